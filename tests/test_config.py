"""
Tests for environment-driven configuration and factories.
"""

import os
from pathlib import Path
from unittest.mock import patch

from qcrag.core.config import (
    debug_enabled,
    get_embedding_provider,
    get_storage_dir,
    get_vector_provider,
    get_vector_store,
    validate_config,
)
from qcrag.vector.adaptive import AdaptiveVectorStore
from qcrag.vector.chroma_store import ChromaVectorStore
from qcrag.vector.embeddings import DeterministicHashEmbedding, SentenceTransformerEmbedding
from qcrag.vector.index import SimpleInMemoryVectorStore


def test_default_provider_is_adaptive(tmp_path):
    with patch.dict(os.environ, {"VECTOR_STORAGE_DIR": str(tmp_path)}, clear=False):
        os.environ.pop("VECTOR_PROVIDER", None)
        store = get_vector_store()

    assert isinstance(store, AdaptiveVectorStore)
    assert isinstance(store.durable, ChromaVectorStore)
    assert isinstance(store.volatile, SimpleInMemoryVectorStore)


def test_memory_provider(tmp_path):
    with patch.dict(os.environ, {"VECTOR_PROVIDER": "memory", "VECTOR_STORAGE_DIR": str(tmp_path)}):
        store = get_vector_store()
        assert get_storage_dir() == Path(tmp_path)

    assert isinstance(store, SimpleInMemoryVectorStore)


def test_chroma_provider_reads_host_and_port():
    with patch.dict(os.environ, {"VECTOR_PROVIDER": "chroma", "CHROMA_HOST": "chroma.local", "CHROMA_PORT": "9000"}):
        store = get_vector_store()

    assert isinstance(store, ChromaVectorStore)
    assert store.host == "chroma.local"
    assert store.port == 9000


def test_embedding_provider_selection():
    with patch.dict(os.environ, {"EMBED_PROVIDER": "hash", "EMBED_DIM": "32"}):
        provider = get_embedding_provider()
        assert isinstance(provider, DeterministicHashEmbedding)
        assert provider.get_dimension() == 32

    with patch.dict(os.environ, {"EMBED_PROVIDER": "sentence_transformers", "EMBED_MODEL_NAME": "tiny-model"}):
        provider = get_embedding_provider()
        assert isinstance(provider, SentenceTransformerEmbedding)
        assert provider.model_name == "tiny-model"


def test_debug_flag():
    with patch.dict(os.environ, {"DEBUG": "true"}):
        assert debug_enabled()
    with patch.dict(os.environ, {"DEBUG": "false"}):
        assert not debug_enabled()


def test_validate_config():
    with patch.dict(os.environ, {"VECTOR_PROVIDER": "adaptive", "EMBED_PROVIDER": "hash"}):
        assert get_vector_provider() == "adaptive"
        assert validate_config() == []

    with patch.dict(os.environ, {"VECTOR_PROVIDER": "faiss", "EMBED_PROVIDER": "openai"}):
        issues = validate_config()

    assert "Invalid VECTOR_PROVIDER: faiss" in issues
    assert "Invalid EMBED_PROVIDER: openai" in issues
