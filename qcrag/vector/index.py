"""
Vector store interface and the volatile in-memory backend.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import numpy as np

from util.logging import logger
from .persistence import JsonNamespacePersistence
from .types import VectorRecord, QueryResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the common prefix of two vectors.

    A zero norm is replaced by 1, so degenerate vectors score their raw dot
    product instead of raising.
    """
    length = min(len(a), len(b))
    if length == 0:
        return 0.0

    va = np.asarray(a[:length], dtype=np.float64)
    vb = np.asarray(b[:length], dtype=np.float64)
    denominator = float(np.linalg.norm(va) * np.linalg.norm(vb)) or 1.0
    return float(np.dot(va, vb)) / denominator


class IVectorStore(ABC):
    """Abstract interface for namespaced vector storage operations."""

    @abstractmethod
    async def upsert(self, records: List[VectorRecord]) -> None:
        """Insert or replace records by (namespace, id)."""
        pass

    @abstractmethod
    async def query(self, namespace: str, embedding: List[float], top_k: int = 5) -> List[QueryResult]:
        """Return the top_k records of a namespace ranked by cosine similarity."""
        pass

    @abstractmethod
    async def clear_namespace(self, namespace: str) -> None:
        """Remove every record in a namespace."""
        pass

    @abstractmethod
    async def count(self, namespace: str) -> int:
        """Number of records stored in a namespace."""
        pass

    async def health_check(self) -> bool:
        """Whether the backend is reachable."""
        return True


class SimpleInMemoryVectorStore(IVectorStore):
    """In-process store using cosine similarity, optionally mirrored to JSON files."""

    def __init__(self, persistence: Optional[JsonNamespacePersistence] = None):
        self._namespaces: Dict[str, List[VectorRecord]] = {}
        self._persistence = persistence

    def _get_namespace(self, namespace: str) -> List[VectorRecord]:
        if namespace not in self._namespaces:
            self._namespaces[namespace] = self._persistence.load(namespace) if self._persistence else []
        return self._namespaces[namespace]

    async def upsert(self, records: List[VectorRecord]) -> None:
        touched = []
        for record in records:
            bucket = self._get_namespace(record.namespace)
            index = next((i for i, existing in enumerate(bucket) if existing.id == record.id), None)
            if index is not None:
                bucket[index] = record
            else:
                bucket.append(record)
            if record.namespace not in touched:
                touched.append(record.namespace)

        for namespace in touched:
            if self._persistence:
                self._persistence.save(namespace, self._namespaces[namespace])
            logger.log_vector_operation("upsert", namespace, {
                "backend": "memory",
                "records": sum(1 for r in records if r.namespace == namespace)
            })

    async def query(self, namespace: str, embedding: List[float], top_k: int = 5) -> List[QueryResult]:
        bucket = self._get_namespace(namespace)
        if not bucket or top_k <= 0:
            return []

        scored = [(record, cosine_similarity(record.embedding, embedding)) for record in bucket]
        # sorted() is stable with reverse=True, so ties keep insertion order
        scored = sorted(scored, key=lambda item: item[1], reverse=True)

        return [
            QueryResult(
                id=record.id,
                score=score,
                text=record.text,
                metadata=dict(record.metadata),
                namespace=record.namespace
            )
            for record, score in scored[:top_k]
        ]

    async def clear_namespace(self, namespace: str) -> None:
        self._namespaces[namespace] = []
        if self._persistence:
            self._persistence.delete(namespace)
        logger.log_vector_operation("clear", namespace, {"backend": "memory"})

    async def count(self, namespace: str) -> int:
        return len(self._get_namespace(namespace))
