"""
Request/response models for the ingestion and query API.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.config import QC_NAMESPACE


class IngestDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    text: Optional[str] = Field(default=None, min_length=1)
    json_data: Optional[Any] = Field(default=None, alias="json")
    metadata: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def text_or_json_required(self):
        if not isinstance(self.text, str) and self.json_data is None:
            raise ValueError("Each document must include either 'text' or 'json'")
        return self

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "json": self.json_data,
            "metadata": self.metadata or {}
        }


class _ChunkingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def overlap_smaller_than_size(self):
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError('chunkOverlap must be smaller than chunkSize')
        return self


class IngestRequest(_ChunkingRequest):
    namespace: Optional[str] = None
    chunk_size: int = Field(default=800, ge=50, le=4000, alias="chunkSize")
    chunk_overlap: int = Field(default=100, ge=0, le=400, alias="chunkOverlap")
    documents: List[IngestDocument]

    @field_validator('documents')
    @classmethod
    def documents_must_not_be_empty(cls, v):
        if not v:
            raise ValueError('documents cannot be empty')
        return v


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    chunks_added: int = Field(alias="chunksAdded")
    namespace: str


class QCDataIngestRequest(_ChunkingRequest):
    namespace: str = QC_NAMESPACE
    data: Dict[str, Any]
    chunk_size: int = Field(default=1200, ge=50, le=4000, alias="chunkSize")
    chunk_overlap: int = Field(default=200, ge=0, le=400, alias="chunkOverlap")
    max_relationship_depth: int = Field(default=2, ge=0, le=5, alias="maxRelationshipDepth")

    @field_validator('data')
    @classmethod
    def data_must_not_be_empty(cls, v):
        if not v:
            raise ValueError('data cannot be empty')
        return v


class QCDataIngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    records_processed: int = Field(alias="recordsProcessed")
    chunks_created: int = Field(alias="chunksCreated")
    storage_type: str = Field(alias="storageType")
    stats: Dict[str, Any]


class ChartOptions(BaseModel):
    type: Optional[Literal["bar", "line", "pie", "doughnut"]] = None
    output: Optional[Literal["png", "json"]] = None
    width: Optional[int] = None
    height: Optional[int] = None


class QueryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    namespace: Optional[str] = None
    prompt: str = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=50, alias="topK")
    chart_requested: Optional[bool] = Field(default=None, alias="chartRequested")
    chart: Optional[ChartOptions] = None

    @field_validator('prompt')
    @classmethod
    def prompt_must_not_be_blank(cls, v):
        if not v.strip():
            raise ValueError('prompt cannot be empty')
        return v


class SourceHit(BaseModel):
    id: str
    score: float
    text: str
    metadata: Dict[str, Any]


class QueryResponse(BaseModel):
    ok: bool = True
    answer: str
    chart: Optional[Dict[str, Any]] = None
    sources: List[SourceHit]


class StorageStatus(BaseModel):
    type: str
    qc_records_available: int


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    storage: StorageStatus


class SchemaDocsResponse(BaseModel):
    tables: List[str]
    documentation: str
