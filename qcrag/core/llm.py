"""
Ollama-backed text generation for the decision and answer prompts.
"""

import asyncio
from typing import Optional

import ollama

from util.logging import logger
from .retrieval import ILLMClient


class OllamaLLMClient(ILLMClient):
    """
    Single-turn chat against a local Ollama model.

    Errors from the Ollama server propagate; RetrievalService falls back to
    its heuristics when a call fails.
    """

    def __init__(self, model_name: str, temperature: float = 0.2, host: Optional[str] = None):
        self.model_name = model_name
        self.temperature = temperature
        self._client = ollama.Client(host=host) if host else None

    def _chat(self, prompt: str) -> str:
        chat = self._client.chat if self._client is not None else ollama.chat
        response = chat(
            model=self.model_name,
            messages=[{'role': 'user', 'content': prompt}],
            options={'temperature': self.temperature}
        )
        return response.get('message', {}).get('content', '') or ''

    async def ask(self, prompt: str) -> str:
        try:
            return await asyncio.to_thread(self._chat, prompt)
        except ollama.ResponseError as e:
            logger.warning(f"Ollama model error ({self.model_name}): {e}")
            raise
