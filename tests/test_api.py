"""
Tests for the HTTP endpoints.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from qcrag.api.main import PipelineServices, app, get_services
from qcrag.vector.adaptive import AdaptiveVectorStore
from qcrag.vector.embeddings import DeterministicHashEmbedding
from qcrag.vector.index import SimpleInMemoryVectorStore


@pytest.fixture
def services():
    return PipelineServices(
        vector_store=SimpleInMemoryVectorStore(),
        embedding_provider=DeterministicHashEmbedding(dimension=64)
    )


@pytest.fixture
def client(services):
    """Test client wired to in-memory services."""
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"
        assert "timestamp" in data
        assert data["storage"] == {"type": "SimpleInMemoryVectorStore", "qc_records_available": 0}

    def test_health_with_adaptive_store(self):
        durable = AsyncMock()
        durable.health_check.return_value = False
        services = PipelineServices(
            vector_store=AdaptiveVectorStore(durable, SimpleInMemoryVectorStore()),
            embedding_provider=DeterministicHashEmbedding(dimension=64)
        )
        app.dependency_overrides[get_services] = lambda: services
        try:
            with TestClient(app) as test_client:
                data = test_client.get("/health").json()
        finally:
            app.dependency_overrides.clear()

        assert data["storage"]["type"] == "In-Memory"
        durable.health_check.assert_awaited()


class TestIngest:
    def test_ingest_text_and_json(self, client, services):
        response = client.post("/ingest", json={
            "namespace": "docs",
            "chunkSize": 50,
            "chunkOverlap": 10,
            "documents": [
                {"id": "note", "text": "a" * 90},
                {"json": {"plant": {"plant_name": "Pune Works"}}, "metadata": {"source": "export"}}
            ]
        })

        assert response.status_code == 200
        assert response.json() == {"ok": True, "chunksAdded": 3, "namespace": "docs"}

    def test_default_namespace(self, client):
        response = client.post("/ingest", json={"documents": [{"text": "hello"}]})
        assert response.json()["namespace"] == "default"

    @pytest.mark.parametrize("body", [
        {"documents": []},
        {"documents": [{"id": "x"}]},
        {"documents": [{"text": ""}]},
        {"chunkSize": 10, "documents": [{"text": "hello"}]},
        {"chunkSize": 100, "chunkOverlap": 100, "documents": [{"text": "hello"}]},
    ])
    def test_invalid_requests_return_400(self, client, body):
        response = client.post("/ingest", json=body)

        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert response.json()["error"]


class TestQCData:
    def test_ingest_qc_data(self, client, qc_schema):
        response = client.post("/ingest/qc-data", json={"data": qc_schema})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["recordsProcessed"] == 6
        assert data["chunksCreated"] == 7
        assert data["storageType"] == "SimpleInMemoryVectorStore"
        assert data["stats"] == {"name": "qc_inspections", "count": 7}

        health = client.get("/health").json()
        assert health["storage"]["qc_records_available"] == 7

    def test_schema_docs_after_ingest(self, client, qc_schema):
        assert client.get("/schema/docs").json()["documentation"] == "No schema loaded"

        client.post("/ingest/qc-data", json={"data": qc_schema})
        data = client.get("/schema/docs").json()

        assert data["tables"] == list(qc_schema.keys())
        assert "### inspection_reading" in data["documentation"]

    def test_empty_data_rejected(self, client):
        response = client.post("/ingest/qc-data", json={"data": {}})
        assert response.status_code == 400


class TestQuery:
    def test_query_returns_sources_and_chart(self, client):
        client.post("/ingest", json={"namespace": "qc", "documents": [
            {"id": "pune", "text": "plant_name: Pune Works\naccepted: 120\nrejected: 4"},
            {"id": "chennai", "text": "plant_name: Chennai Works\naccepted: 98\nrejected: 7"}
        ]})

        response = client.post("/query", json={
            "namespace": "qc",
            "prompt": "compare plants in a pie chart",
            "topK": 2,
            "chart": {"width": 640}
        })

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["answer"].startswith("Summary by plant (fallback):")
        assert data["chart"] == {"type": "pie", "output": "png", "width": 640, "height": 500}
        assert {s["metadata"]["sourceId"] for s in data["sources"]} == {"pune", "chennai"}

    def test_query_chart_suppressed(self, client):
        response = client.post("/query", json={"prompt": "pie chart", "chartRequested": False})
        assert response.status_code == 200
        assert response.json()["chart"] is None

    @pytest.mark.parametrize("body", [
        {"prompt": ""},
        {"prompt": "   "},
        {"prompt": "hi", "topK": 0},
        {"prompt": "hi", "chart": {"type": "radar"}},
    ])
    def test_invalid_query_returns_400(self, client, body):
        response = client.post("/query", json=body)
        assert response.status_code == 400
        assert response.json()["ok"] is False
