"""
Records stored in and returned from the vector store.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class VectorRecord:
    """Represents an embedded text chunk within a namespace."""

    id: str
    """Caller-supplied identifier, unique within the namespace"""

    text: str
    """The chunk text that was embedded"""

    embedding: List[float]
    """Dense vector for the text"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Arbitrary JSON-compatible metadata"""

    namespace: str = "default"
    """Partition key; namespaces never see each other's records"""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "metadata": self.metadata,
            "embedding": [float(x) for x in self.embedding],
            "namespace": self.namespace
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VectorRecord':
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            embedding=list(data.get("embedding") or []),
            metadata=dict(data.get("metadata") or {}),
            namespace=data.get("namespace", "default")
        )


@dataclass
class QueryResult:
    """Represents a ranked match from the vector store."""

    id: str
    """Identifier for the matching record"""

    score: float
    """Cosine similarity to the query embedding"""

    text: str
    """Stored chunk text"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Metadata associated with the matched record"""

    namespace: str = "default"
