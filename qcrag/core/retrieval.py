"""
Question answering over the vector store.

The question is embedded, the namespace is searched, and the retrieved chunk
texts become the context for two LLM prompts: a decision prompt (does the
answer need a chart?) and an answer prompt. Without an LLM client, or when it
fails, the chart decision falls back to prompt keywords and the answer to a
per-plant summary parsed from the context.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from util.logging import logger
from qcrag.vector.embeddings import IEmbeddingProvider
from qcrag.vector.index import IVectorStore
from qcrag.vector.types import QueryResult
from .chart_policy import (
    CHART_TYPES,
    ChartSpec,
    build_fallback_summary,
    decide_chart,
    extract_json_object,
    parse_rows_from_context,
    prompt_disables_chart,
    prompt_requests_chart,
)
from .errors import EmbeddingError

DECISION_PROMPT = """You are Agent A (Decision). Decide if the user's prompt requires a chart/graph based on the prompt and context.
Return STRICT JSON: {{"needChart": boolean, "chartType": "bar"|"line"|"pie"|"doughnut"|null, "reason": string}}
Rules:
- If the user explicitly asks for a plot/chart/graph/visualization OR numeric comparisons are central, needChart=true.
- Otherwise needChart=false.
- If needChart=true and user specified a type (pie/line/bar/doughnut), set chartType accordingly; else default chartType="bar".
- reason should be short and reference the context sufficiency.

CONTEXT:
{context}

USER PROMPT:
{prompt}"""

ANSWER_PROMPT = """You are Agent B (Answer). Use CONTEXT to answer the user succinctly. If context is insufficient, say so.
Do NOT mention a chart unless the variable NEED_CHART is true.

NEED_CHART: {need_chart}

CONTEXT:
{context}

USER PROMPT:
{prompt}"""


class ILLMClient(ABC):
    """Abstract interface for the text-generation collaborator."""

    @abstractmethod
    async def ask(self, prompt: str) -> str:
        """Return the model's reply to a single prompt."""
        pass


@dataclass
class AnswerResult:
    answer: str
    chart: Optional[ChartSpec] = None
    sources: List[QueryResult] = field(default_factory=list)
    need_chart: bool = False


def build_context(results: List[QueryResult]) -> str:
    return "\n\n".join(r.text for r in results)


class RetrievalService:
    """Retrieves ranked chunks and composes answers from them."""

    def __init__(
        self,
        vector_store: IVectorStore,
        embedding_provider: IEmbeddingProvider,
        llm_client: Optional[ILLMClient] = None
    ):
        self.vector_store = vector_store
        self.embedding_provider = embedding_provider
        self.llm_client = llm_client

    async def retrieve(self, question: str, namespace: str = "default", top_k: int = 5) -> List[QueryResult]:
        vectors = await self.embedding_provider.embed_many([question])
        if not vectors:
            raise EmbeddingError("Embedding provider returned no vector for the question")

        results = await self.vector_store.query(namespace, vectors[0], top_k)
        logger.log_query(namespace, top_k, len(results), question)
        return results

    async def _decide_need_chart(self, question: str, context: str):
        """Returns (need_chart, chart_type) from the decision agent or prompt keywords."""
        keyword_decision = prompt_requests_chart(question) and not prompt_disables_chart(question)
        if self.llm_client is None:
            return keyword_decision, None

        try:
            raw = await self.llm_client.ask(DECISION_PROMPT.format(context=context, prompt=question))
        except Exception as e:
            logger.warning(f"Decision agent unavailable, using prompt keywords: {e}")
            return keyword_decision, None

        parsed = extract_json_object(raw) or {}
        need_chart = parsed.get("needChart") if isinstance(parsed.get("needChart"), bool) else False
        chart_type = parsed.get("chartType") if parsed.get("chartType") in CHART_TYPES else None
        return need_chart, chart_type

    async def _compose_answer(self, question: str, context: str, need_chart: bool) -> str:
        if self.llm_client is not None:
            try:
                return await self.llm_client.ask(ANSWER_PROMPT.format(
                    need_chart=str(need_chart).lower(), context=context, prompt=question
                ))
            except Exception as e:
                logger.warning(f"Answer agent unavailable, using fallback summary: {e}")

        return build_fallback_summary(parse_rows_from_context(context))

    async def answer(
        self,
        question: str,
        namespace: str = "default",
        top_k: int = 5,
        chart_requested: Optional[bool] = None,
        chart_options: Optional[Dict[str, Any]] = None
    ) -> AnswerResult:
        results = await self.retrieve(question, namespace, top_k)
        context = build_context(results)

        need_chart, chart_type = await self._decide_need_chart(question, context)
        answer = await self._compose_answer(question, context, need_chart)
        chart = decide_chart(
            question,
            context,
            len(results),
            need_chart,
            llm_chart_type=chart_type,
            chart_requested=chart_requested,
            chart_options=chart_options
        )

        return AnswerResult(answer=answer, chart=chart, sources=results, need_chart=need_chart)
