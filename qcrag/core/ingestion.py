"""
Ingestion: text or JSON documents and schema documents into the vector store.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from util.logging import logger
from qcrag.vector.embeddings import IEmbeddingProvider
from qcrag.vector.index import IVectorStore
from qcrag.vector.types import VectorRecord
from .chunker import chunk_text
from .errors import IngestionError
from .json_to_text import json_to_text
from .narrator import RelationshipNarrator, record_identity
from .schema_mapper import DynamicSchemaMapper

# Schema documentation is chunked coarser than rows
SCHEMA_DOC_TABLE = "schema_documentation"
SCHEMA_DOC_CHUNK_SIZE = 2000
SCHEMA_DOC_CHUNK_OVERLAP = 300


@dataclass
class IngestResult:
    namespace: str
    records_processed: int = 0
    chunks_created: int = 0
    storage_type: str = "unknown"
    ids: List[str] = field(default_factory=list)


@dataclass
class _PendingChunk:
    id: str
    text: str
    metadata: Dict[str, Any]


def _validate_chunking(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise IngestionError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise IngestionError(
            f"chunk_overlap must be >= 0 and smaller than chunk_size ({chunk_overlap} >= {chunk_size})"
        )


def _storage_type(vector_store: IVectorStore) -> str:
    getter = getattr(vector_store, "get_active_storage_type", None)
    if callable(getter):
        return getter()
    return vector_store.__class__.__name__


class IngestionService:
    """Chunks, embeds and upserts documents into one vector store."""

    def __init__(
        self,
        vector_store: IVectorStore,
        embedding_provider: IEmbeddingProvider,
        schema_mapper: Optional[DynamicSchemaMapper] = None,
        narrator: Optional[RelationshipNarrator] = None
    ):
        self.vector_store = vector_store
        self.embedding_provider = embedding_provider
        self.schema_mapper = schema_mapper or DynamicSchemaMapper()
        self.narrator = narrator or RelationshipNarrator(self.schema_mapper)

    async def _embed_and_upsert(self, chunks: List[_PendingChunk], namespace: str) -> None:
        if not chunks:
            return

        vectors = await self.embedding_provider.embed_many([c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise IngestionError(f"Embedding provider returned {len(vectors)} vectors for {len(chunks)} chunks")

        await self.vector_store.upsert([
            VectorRecord(
                id=chunk.id,
                text=chunk.text,
                embedding=list(vector),
                metadata=chunk.metadata,
                namespace=namespace
            )
            for chunk, vector in zip(chunks, vectors)
        ])

    async def ingest_documents(
        self,
        documents: List[Mapping[str, Any]],
        namespace: str = "default",
        chunk_size: int = 800,
        chunk_overlap: int = 100
    ) -> IngestResult:
        """
        Ingest free-text or JSON documents.

        Each document carries `text` or `json`, plus optional `id` and
        `metadata`. Text wins when both are present; JSON is flattened first.
        Blank documents are skipped.
        """
        _validate_chunking(chunk_size, chunk_overlap)

        pending = []
        processed = 0
        for doc in documents:
            text = doc.get("text")
            if isinstance(text, str) and text:
                base_text = text
            elif doc.get("json") is not None:
                base_text = json_to_text(doc["json"])
            else:
                base_text = ""
            if not base_text or not base_text.strip():
                continue

            processed += 1
            doc_id = doc.get("id")
            for piece in chunk_text(base_text, chunk_size, chunk_overlap):
                metadata = dict(doc.get("metadata") or {})
                metadata["sourceId"] = doc_id
                pending.append(_PendingChunk(
                    id=f"{doc_id or 'doc'}-{uuid.uuid4().hex[:12]}",
                    text=piece,
                    metadata=metadata
                ))

        await self._embed_and_upsert(pending, namespace)

        result = IngestResult(
            namespace=namespace,
            records_processed=processed,
            chunks_created=len(pending),
            storage_type=_storage_type(self.vector_store),
            ids=[c.id for c in pending]
        )
        logger.log_ingestion(namespace, processed, len(pending), details={"kind": "documents"})
        return result

    async def ingest_schema_document(
        self,
        document: Mapping[str, Any],
        namespace: str = "qc_inspections",
        chunk_size: int = 1200,
        chunk_overlap: int = 200,
        max_relationship_depth: int = 2,
        include_schema_docs: bool = True
    ) -> IngestResult:
        """
        Load a table-keyed schema document and ingest every row as narrated text.

        Row chunk ids are `<table>-<id>-<chunk index>` for rows with an `id`
        and `<table>-row<position>-<chunk index>` otherwise, so re-ingesting
        the same document replaces earlier chunks instead of duplicating them.
        The rendered schema documentation is stored alongside as
        `schema-doc-chunk-<i>` chunks unless include_schema_docs is False.
        """
        _validate_chunking(chunk_size, chunk_overlap)
        self.schema_mapper.load_schema(document)

        pending = []
        processed = 0
        for table_name in self.schema_mapper.table_names():
            table = self.schema_mapper.get_table(table_name)
            table_type = self.schema_mapper.get_table_category(table_name)
            for position, row in enumerate(table.all_rows()):
                text = self.narrator.convert_to_text(
                    row,
                    table_name=table_name,
                    max_relationship_depth=max_relationship_depth
                )
                processed += 1

                row_id = row.get("id")
                row_key = row_id if row_id not in (None, "") else f"row{position}"
                for index, piece in enumerate(chunk_text(text, chunk_size, chunk_overlap)):
                    pending.append(_PendingChunk(
                        id=f"{table_name}-{row_key}-{index}",
                        text=piece,
                        metadata={
                            "table": table_name,
                            "record_id": record_identity(row),
                            "chunk_index": index,
                            "tableType": table_type,
                            "hasRelationships": bool(table.relationships)
                        }
                    ))

        doc_chunks = 0
        if include_schema_docs:
            pieces = chunk_text(
                self.schema_mapper.generate_schema_documentation(),
                SCHEMA_DOC_CHUNK_SIZE,
                SCHEMA_DOC_CHUNK_OVERLAP
            )
            doc_chunks = len(pieces)
            for index, piece in enumerate(pieces):
                pending.append(_PendingChunk(
                    id=f"schema-doc-chunk-{index}",
                    text=piece,
                    metadata={
                        "table": SCHEMA_DOC_TABLE,
                        "recordType": "schema_info",
                        "chunk_index": index,
                        "totalChunks": doc_chunks,
                        "isSchemaDoc": True
                    }
                ))

        await self._embed_and_upsert(pending, namespace)

        result = IngestResult(
            namespace=namespace,
            records_processed=processed,
            chunks_created=len(pending),
            storage_type=_storage_type(self.vector_store),
            ids=[c.id for c in pending]
        )
        logger.log_ingestion(namespace, processed, len(pending), details={
            "kind": "schema",
            "tables": len(self.schema_mapper.table_names()),
            "schema_doc_chunks": doc_chunks
        })
        return result
