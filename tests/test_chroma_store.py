"""
Tests for the Chroma backend against a mocked client.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from qcrag.vector.chroma_store import ChromaVectorStore
from qcrag.vector.types import VectorRecord


@pytest.fixture
def collection():
    mock_collection = MagicMock()
    mock_collection.count.return_value = 3
    mock_collection.query.return_value = {
        "ids": [["r1", "r2"]],
        "documents": [["first chunk", "second chunk"]],
        "metadatas": [[{"table": "plant_master"}, None]],
        "distances": [[0.1, 0.4]],
    }
    return mock_collection


@pytest.fixture
def client(collection):
    mock_client = MagicMock()
    mock_client.get_or_create_collection.return_value = collection
    return mock_client


def test_collection_uses_cosine_space(client):
    store = ChromaVectorStore(client=client)
    asyncio.run(store.count("qc"))

    kwargs = client.get_or_create_collection.call_args.kwargs
    assert kwargs["name"] == "qc"
    assert kwargs["metadata"]["hnsw:space"] == "cosine"


def test_collection_is_cached(client):
    store = ChromaVectorStore(client=client)
    asyncio.run(store.count("qc"))
    asyncio.run(store.count("qc"))

    assert client.get_or_create_collection.call_count == 1


def test_upsert_groups_by_namespace_and_flattens_metadata(client, collection):
    store = ChromaVectorStore(client=client)
    asyncio.run(store.upsert([
        VectorRecord(id="a", text="t1", embedding=[1, 0], metadata={"table": "x", "tags": ["a"], "skip": None}, namespace="qc"),
        VectorRecord(id="b", text="t2", embedding=[0, 1], metadata={}, namespace="qc"),
    ]))

    collection.upsert.assert_called_once()
    kwargs = collection.upsert.call_args.kwargs
    assert kwargs["ids"] == ["a", "b"]
    assert kwargs["embeddings"] == [[1.0, 0.0], [0.0, 1.0]]
    assert kwargs["documents"] == ["t1", "t2"]

    metadata = kwargs["metadatas"][0]
    assert metadata["table"] == "x"
    assert json.loads(metadata["tags"]) == ["a"]
    assert "skip" not in metadata
    assert metadata["namespace"] == "qc"
    assert "ingested_at" in metadata


def test_empty_upsert_does_not_touch_client(client):
    store = ChromaVectorStore(client=client)
    asyncio.run(store.upsert([]))
    client.get_or_create_collection.assert_not_called()


def test_query_converts_distance_to_score(client, collection):
    store = ChromaVectorStore(client=client)
    results = asyncio.run(store.query("qc", [1.0, 0.0], top_k=5))

    assert collection.query.call_args.kwargs["n_results"] == 3
    assert [r.id for r in results] == ["r1", "r2"]
    assert results[0].score == pytest.approx(0.9)
    assert results[0].text == "first chunk"
    assert results[0].metadata["table"] == "plant_master"
    assert results[0].metadata["similarity_score"] == pytest.approx(0.9)
    assert results[1].metadata == {"similarity_score": pytest.approx(0.6)}


def test_query_empty_collection(client, collection):
    collection.count.return_value = 0
    store = ChromaVectorStore(client=client)

    assert asyncio.run(store.query("qc", [1.0, 0.0])) == []
    collection.query.assert_not_called()


def test_clear_namespace_tolerates_missing_collection(client):
    client.delete_collection.side_effect = ValueError("Collection qc does not exist")
    store = ChromaVectorStore(client=client)

    asyncio.run(store.clear_namespace("qc"))
    client.delete_collection.assert_called_once_with(name="qc")


def test_clear_namespace_drops_cached_collection(client):
    store = ChromaVectorStore(client=client)
    asyncio.run(store.count("qc"))
    asyncio.run(store.clear_namespace("qc"))
    asyncio.run(store.count("qc"))

    assert client.get_or_create_collection.call_count == 2


def test_health_check(client):
    store = ChromaVectorStore(client=client)
    assert asyncio.run(store.health_check()) is True

    client.heartbeat.side_effect = ConnectionError("refused")
    assert asyncio.run(store.health_check()) is False


def test_count_propagates_failures(client):
    client.get_or_create_collection.side_effect = ConnectionError("refused")
    store = ChromaVectorStore(client=client)

    with pytest.raises(ConnectionError):
        asyncio.run(store.count("qc"))


def test_get_stats(client):
    store = ChromaVectorStore(client=client)
    assert asyncio.run(store.get_stats("qc")) == {"count": 3, "name": "qc"}
