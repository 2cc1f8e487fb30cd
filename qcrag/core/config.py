"""
Runtime configuration read from environment variables.
"""

import os
from pathlib import Path

# Vector storage configuration
VECTOR_PROVIDER = os.getenv("VECTOR_PROVIDER", "adaptive")  # adaptive|memory|chroma
VECTOR_STORAGE_DIR = os.getenv("VECTOR_STORAGE_DIR", "./.vector_storage")
CHROMA_HOST = os.getenv("CHROMA_HOST", "localhost")
CHROMA_PORT = int(os.getenv("CHROMA_PORT", "8000"))

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformers
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")
EMBED_DIM = int(os.getenv("EMBED_DIM", "256"))

# Ingestion defaults
DEFAULT_NAMESPACE = os.getenv("DEFAULT_NAMESPACE", "default")
QC_NAMESPACE = os.getenv("QC_NAMESPACE", "qc_inspections")
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "800"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "100"))
QC_CHUNK_SIZE = int(os.getenv("QC_CHUNK_SIZE", "1200"))
QC_CHUNK_OVERLAP = int(os.getenv("QC_CHUNK_OVERLAP", "200"))
MAX_RELATIONSHIP_DEPTH = int(os.getenv("MAX_RELATIONSHIP_DEPTH", "2"))

# Query defaults
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "5"))

# LLM configuration
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "none")  # none|ollama
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:latest")
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Version string
VERSION = "1.0.0"

VALID_VECTOR_PROVIDERS = ["adaptive", "memory", "chroma"]
VALID_EMBED_PROVIDERS = ["hash", "sentence_transformers"]
VALID_LLM_PROVIDERS = ["none", "ollama"]


def get_vector_provider():
    """Get configured vector provider (adaptive|memory|chroma)."""
    return os.getenv("VECTOR_PROVIDER", VECTOR_PROVIDER)


def get_storage_dir() -> Path:
    """Get the directory holding the in-memory store's JSON mirror."""
    return Path(os.getenv("VECTOR_STORAGE_DIR", VECTOR_STORAGE_DIR))


def get_vector_store():
    """Get configured vector store implementation."""
    from qcrag.vector.index import SimpleInMemoryVectorStore
    from qcrag.vector.persistence import JsonNamespacePersistence

    volatile = SimpleInMemoryVectorStore(persistence=JsonNamespacePersistence(get_storage_dir()))
    provider = get_vector_provider()

    if provider == "memory":
        return volatile

    from qcrag.vector.chroma_store import ChromaVectorStore
    durable = ChromaVectorStore(
        host=os.getenv("CHROMA_HOST", CHROMA_HOST),
        port=int(os.getenv("CHROMA_PORT", str(CHROMA_PORT)))
    )
    if provider == "chroma":
        return durable

    # Default to the adaptive router for unknown providers
    from qcrag.vector.adaptive import AdaptiveVectorStore
    return AdaptiveVectorStore(durable=durable, volatile=volatile)


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    provider = os.getenv("EMBED_PROVIDER", EMBED_PROVIDER)

    if provider == "sentence_transformers":
        from qcrag.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(os.getenv("EMBED_MODEL_NAME", EMBED_MODEL_NAME))

    from qcrag.vector.embeddings import DeterministicHashEmbedding
    return DeterministicHashEmbedding(dimension=int(os.getenv("EMBED_DIM", str(EMBED_DIM))))


def get_llm_client():
    """Get configured LLM client, or None to answer with heuristics only."""
    provider = os.getenv("LLM_PROVIDER", LLM_PROVIDER)
    if provider != "ollama":
        return None

    from qcrag.core.llm import OllamaLLMClient
    return OllamaLLMClient(
        model_name=os.getenv("OLLAMA_MODEL", OLLAMA_MODEL),
        temperature=float(os.getenv("LLM_TEMPERATURE", str(LLM_TEMPERATURE))),
        host=os.getenv("OLLAMA_HOST", OLLAMA_HOST) or None
    )


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if get_vector_provider() not in VALID_VECTOR_PROVIDERS:
        issues.append(f"Invalid VECTOR_PROVIDER: {get_vector_provider()}")

    embed_provider = os.getenv("EMBED_PROVIDER", EMBED_PROVIDER)
    if embed_provider not in VALID_EMBED_PROVIDERS:
        issues.append(f"Invalid EMBED_PROVIDER: {embed_provider}")

    llm_provider = os.getenv("LLM_PROVIDER", LLM_PROVIDER)
    if llm_provider not in VALID_LLM_PROVIDERS:
        issues.append(f"Invalid LLM_PROVIDER: {llm_provider}")

    if EMBED_DIM < 1:
        issues.append("EMBED_DIM must be >= 1")

    if CHUNK_SIZE < 1:
        issues.append("CHUNK_SIZE must be >= 1")

    if not 0 <= CHUNK_OVERLAP < CHUNK_SIZE:
        issues.append("CHUNK_OVERLAP must be >= 0 and smaller than CHUNK_SIZE")

    if not 0 <= QC_CHUNK_OVERLAP < QC_CHUNK_SIZE:
        issues.append("QC_CHUNK_OVERLAP must be >= 0 and smaller than QC_CHUNK_SIZE")

    if MAX_RELATIONSHIP_DEPTH < 0:
        issues.append("MAX_RELATIONSHIP_DEPTH must be >= 0")

    return issues
