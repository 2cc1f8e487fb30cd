"""
ChromaDB-backed durable implementation of IVectorStore.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from util.logging import logger
from qcrag.core.errors import VectorStoreError
from .index import IVectorStore
from .types import VectorRecord, QueryResult


def _chroma_metadata(record: VectorRecord, ingested_at: str) -> Dict[str, Any]:
    """Chroma only accepts scalar metadata values; nested values are JSON-encoded."""
    flattened = {}
    for key, value in record.metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            flattened[key] = value
        else:
            flattened[key] = json.dumps(value, default=str)
    flattened["namespace"] = record.namespace
    flattened["ingested_at"] = ingested_at
    return flattened


class ChromaVectorStore(IVectorStore):
    """One Chroma collection per namespace, cosine distance space."""

    def __init__(self, host: str = "localhost", port: int = 8000, client=None):
        """
        Initialize the Chroma store.

        Args:
            host: Chroma server host
            port: Chroma server port
            client: Pre-built chromadb client (skips HttpClient construction)
        """
        self.host = host
        self.port = port
        self._client = client
        self._collections: Dict[str, Any] = {}

    @property
    def client(self):
        if self._client is None:
            try:
                import chromadb
            except ImportError:
                raise VectorStoreError("chromadb not installed. Please install the chromadb package.")
            self._client = chromadb.HttpClient(host=self.host, port=self.port)
        return self._client

    def _get_collection(self, namespace: str):
        if namespace not in self._collections:
            self._collections[namespace] = self.client.get_or_create_collection(
                name=namespace,
                metadata={
                    "hnsw:space": "cosine",
                    "description": f"QC data collection for namespace: {namespace}",
                    "created_at": datetime.now(timezone.utc).isoformat()
                }
            )
        return self._collections[namespace]

    def _upsert_sync(self, records: List[VectorRecord]) -> None:
        by_namespace: Dict[str, List[VectorRecord]] = {}
        for record in records:
            by_namespace.setdefault(record.namespace or "default", []).append(record)

        ingested_at = datetime.now(timezone.utc).isoformat()
        for namespace, ns_records in by_namespace.items():
            collection = self._get_collection(namespace)
            collection.upsert(
                ids=[r.id for r in ns_records],
                embeddings=[[float(x) for x in r.embedding] for r in ns_records],
                documents=[r.text for r in ns_records],
                metadatas=[_chroma_metadata(r, ingested_at) for r in ns_records]
            )
            logger.log_vector_operation("upsert", namespace, {"backend": "chroma", "records": len(ns_records)})

    def _query_sync(self, namespace: str, embedding: List[float], top_k: int) -> List[QueryResult]:
        collection = self._get_collection(namespace)
        total = collection.count()
        if total == 0 or top_k <= 0:
            return []

        results = collection.query(
            query_embeddings=[[float(x) for x in embedding]],
            n_results=min(top_k, total),
            include=["documents", "metadatas", "distances"]
        )

        ids = (results.get("ids") or [[]])[0]
        if not ids:
            return []
        documents = (results.get("documents") or [[]])[0] or []
        metadatas = (results.get("metadatas") or [[]])[0] or []
        distances = (results.get("distances") or [[]])[0] or []

        query_results = []
        for i, record_id in enumerate(ids):
            distance = distances[i] if i < len(distances) and distances[i] is not None else 0.0
            score = 1.0 - float(distance)
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            metadata["similarity_score"] = score
            query_results.append(QueryResult(
                id=record_id,
                score=score,
                text=(documents[i] if i < len(documents) else None) or "",
                metadata=metadata,
                namespace=namespace
            ))
        return query_results

    def _clear_sync(self, namespace: str) -> None:
        try:
            self.client.delete_collection(name=namespace)
        except Exception as e:
            logger.info(f"Collection {namespace} may not exist, continuing: {e}")
        self._collections.pop(namespace, None)
        logger.log_vector_operation("clear", namespace, {"backend": "chroma"})

    async def upsert(self, records: List[VectorRecord]) -> None:
        if not records:
            return
        await asyncio.to_thread(self._upsert_sync, records)

    async def query(self, namespace: str, embedding: List[float], top_k: int = 5) -> List[QueryResult]:
        return await asyncio.to_thread(self._query_sync, namespace, embedding, top_k)

    async def clear_namespace(self, namespace: str) -> None:
        await asyncio.to_thread(self._clear_sync, namespace)

    async def count(self, namespace: str) -> int:
        collection = await asyncio.to_thread(self._get_collection, namespace)
        return await asyncio.to_thread(collection.count)

    async def health_check(self) -> bool:
        """Ping the Chroma server; any failure counts as unhealthy."""
        try:
            await asyncio.to_thread(self.client.heartbeat)
            return True
        except Exception as e:
            logger.warning(f"ChromaDB health check failed: {e}")
            return False

    async def get_stats(self, namespace: str) -> Dict[str, Any]:
        try:
            count = await self.count(namespace)
        except Exception as e:
            logger.warning(f"ChromaDB stats unavailable for '{namespace}': {e}")
            count = 0
        return {"count": count, "name": namespace}
