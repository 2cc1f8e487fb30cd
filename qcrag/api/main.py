"""
HTTP surface for ingestion and question answering.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from util.logging import logger
from .schemas import (
    HealthResponse,
    IngestRequest,
    IngestResponse,
    QCDataIngestRequest,
    QCDataIngestResponse,
    QueryRequest,
    QueryResponse,
    SchemaDocsResponse,
    SourceHit,
    StorageStatus,
)
from ..core.config import (
    DEFAULT_NAMESPACE,
    QC_NAMESPACE,
    VERSION,
    debug_enabled,
    get_embedding_provider,
    get_llm_client,
    get_vector_store,
)
from ..core.errors import QCRagError
from ..core.ingestion import IngestionService
from ..core.narrator import RelationshipNarrator
from ..core.retrieval import ILLMClient, RetrievalService
from ..core.schema_mapper import DynamicSchemaMapper


class PipelineServices:
    """Process-wide collaborators shared by all requests."""

    def __init__(self, vector_store=None, embedding_provider=None, llm_client: Optional[ILLMClient] = None):
        self.vector_store = vector_store if vector_store is not None else get_vector_store()
        self.embedding_provider = embedding_provider if embedding_provider is not None else get_embedding_provider()
        self.llm_client = llm_client
        self.schema_mapper = DynamicSchemaMapper()
        self.narrator = RelationshipNarrator(self.schema_mapper)
        self.ingestion = IngestionService(self.vector_store, self.embedding_provider, self.schema_mapper, self.narrator)
        self.retrieval = RetrievalService(self.vector_store, self.embedding_provider, llm_client)

    def storage_type(self) -> str:
        getter = getattr(self.vector_store, "get_active_storage_type", None)
        return getter() if callable(getter) else self.vector_store.__class__.__name__


_services: Optional[PipelineServices] = None


def get_services() -> PipelineServices:
    global _services
    if _services is None:
        _services = PipelineServices(llm_client=get_llm_client())
    return _services


@asynccontextmanager
async def lifespan(app: FastAPI):
    services = app.dependency_overrides.get(get_services, get_services)()
    start_probe = getattr(services.vector_store, "start_health_probe", None)
    if callable(start_probe):
        start_probe()
    logger.info(f"QC RAG API started (storage: {services.storage_type()})")
    yield


# Initialize the FastAPI application
app = FastAPI(
    title="QC RAG API",
    version=VERSION,
    description="Retrieval-augmented question answering over quality-control inspection records",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg')}" for err in exc.errors()]
    return JSONResponse(status_code=400, content={"ok": False, "error": "; ".join(messages)})


@app.exception_handler(QCRagError)
async def pipeline_error_handler(request: Request, exc: QCRagError):
    logger.error(f"{request.url.path} failed: {exc}")
    return JSONResponse(status_code=400, content={"ok": False, "error": str(exc)})


@app.get("/health", response_model=HealthResponse)
async def health_check_endpoint(services: PipelineServices = Depends(get_services)):
    """Check system health and storage backend."""
    count = await services.vector_store.count(QC_NAMESPACE)
    return HealthResponse(
        status="ok",
        version=VERSION,
        timestamp=datetime.now(timezone.utc),
        storage=StorageStatus(type=services.storage_type(), qc_records_available=count)
    )


@app.post("/ingest", response_model=IngestResponse)
async def ingest_endpoint(request: IngestRequest, services: PipelineServices = Depends(get_services)):
    """Chunk, embed and store free-text or JSON documents."""
    namespace = request.namespace or DEFAULT_NAMESPACE
    result = await services.ingestion.ingest_documents(
        [doc.to_document() for doc in request.documents],
        namespace=namespace,
        chunk_size=request.chunk_size,
        chunk_overlap=request.chunk_overlap
    )
    return IngestResponse(chunks_added=result.chunks_created, namespace=namespace)


@app.post("/ingest/qc-data", response_model=QCDataIngestResponse)
async def ingest_qc_data_endpoint(request: QCDataIngestRequest, services: PipelineServices = Depends(get_services)):
    """Load a table-keyed QC schema document and ingest every row with its relationships."""
    result = await services.ingestion.ingest_schema_document(
        request.data,
        namespace=request.namespace,
        chunk_size=request.chunk_size,
        chunk_overlap=request.chunk_overlap,
        max_relationship_depth=request.max_relationship_depth
    )

    stats_getter = getattr(services.vector_store, "get_stats", None)
    if callable(stats_getter):
        stats = await stats_getter(request.namespace)
    else:
        stats = {"name": request.namespace, "count": await services.vector_store.count(request.namespace)}

    return QCDataIngestResponse(
        records_processed=result.records_processed,
        chunks_created=result.chunks_created,
        storage_type=services.storage_type(),
        stats=stats
    )


@app.post("/query", response_model=QueryResponse)
async def query_endpoint(request: QueryRequest, services: PipelineServices = Depends(get_services)):
    """Answer a question from the namespace's most similar chunks."""
    result = await services.retrieval.answer(
        request.prompt,
        namespace=request.namespace or DEFAULT_NAMESPACE,
        top_k=request.top_k,
        chart_requested=request.chart_requested,
        chart_options=request.chart.model_dump(exclude_none=True) if request.chart else None
    )

    return QueryResponse(
        answer=result.answer,
        chart=result.chart.to_dict() if result.chart else None,
        sources=[SourceHit(id=s.id, score=s.score, text=s.text, metadata=s.metadata) for s in result.sources]
    )


@app.get("/schema/docs", response_model=SchemaDocsResponse)
async def schema_docs_endpoint(services: PipelineServices = Depends(get_services)):
    """Documentation of the most recently ingested schema."""
    return SchemaDocsResponse(
        tables=services.schema_mapper.table_names(),
        documentation=services.schema_mapper.generate_schema_documentation()
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3001)
