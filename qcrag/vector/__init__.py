"""
Vector storage: namespaced cosine-similarity stores and embedding providers.
"""

# Package initialization for vector module
from .index import IVectorStore, SimpleInMemoryVectorStore, cosine_similarity
from .persistence import JsonNamespacePersistence
from .chroma_store import ChromaVectorStore
from .adaptive import AdaptiveVectorStore, BackendState
from .types import VectorRecord, QueryResult
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, SentenceTransformerEmbedding

__all__ = [
    'IVectorStore',
    'SimpleInMemoryVectorStore',
    'cosine_similarity',
    'JsonNamespacePersistence',
    'ChromaVectorStore',
    'AdaptiveVectorStore',
    'BackendState',
    'VectorRecord',
    'QueryResult',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding'
]
