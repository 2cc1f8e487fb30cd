"""
Exception types raised by the ingestion, embedding and vector storage paths.
"""


class QCRagError(Exception):
    """Base exception for pipeline failures surfaced to callers."""
    pass


class EmbeddingError(QCRagError):
    """Custom exception for embedding provider failures."""
    pass


class VectorStoreError(QCRagError):
    """Custom exception for vector backend failures."""
    pass


class IngestionError(QCRagError):
    """Custom exception for rejected ingestion parameters."""
    pass
