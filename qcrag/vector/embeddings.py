"""
Embedding providers: an offline hashing fallback and sentence-transformers.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np

from qcrag.core.errors import EmbeddingError

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts, one vector per input in input order."""
        try:
            return [self.embed_text(text) for text in texts]
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider.

    Each character advances an FNV-1a hash whose value selects a bucket to
    increment; the bucket counts are L2-normalised. Not semantic; output is
    stable across runs and processes.
    """

    def __init__(self, dimension: int = 256):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using FNV-1a bucket counts."""
        vector = np.zeros(self.dimension, dtype=np.float64)
        h = FNV_OFFSET_BASIS
        for char in text:
            h ^= ord(char) & 0xFFFF
            h = (h * FNV_PRIME) & 0xFFFFFFFF
            vector[h % self.dimension] += 1.0

        norm = np.linalg.norm(vector) or 1.0
        return (vector / norm).tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError:
                raise EmbeddingError("sentence-transformers not installed. Please install the sentence-transformers package.")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """Encode the whole batch in a worker thread."""
        if not texts:
            return []
        try:
            embeddings = await asyncio.to_thread(
                self.model.encode, list(texts), batch_size=32, convert_to_tensor=False
            )
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Embedding failed for model {self.model_name}: {e}") from e
        return [list(map(float, vector)) for vector in embeddings]
