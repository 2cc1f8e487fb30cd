"""
Shared fixtures: a small QC schema export used across mapper, narrator,
ingestion and API tests.
"""

import copy

import pytest

QC_SCHEMA = {
    "plant_master": {
        "columns": {"id": "integer", "plant_name": "varchar", "plant_id": "varchar", "plant_location_1": "varchar"},
        "sample_rows": [
            {"id": 1, "plant_name": "Pune Works", "plant_id": "PW-01", "plant_location_1": "Pune"},
            {"id": 2, "plant_name": "Chennai Works", "plant_id": "CW-02", "plant_location_1": "Chennai"}
        ],
        "relationships": []
    },
    "machine_master": {
        "columns": {"id": "integer", "machine_name": "varchar", "machine_id": "varchar", "plant_id": "integer"},
        "sample_rows": [
            {"id": 10, "machine_name": "Lathe 3", "machine_id": "M-10", "plant_id": 1}
        ],
        "relationships": [
            {"column": "plant_id", "references_table": "plant_master", "references_column": "id"}
        ]
    },
    "inspection_reading": {
        "columns": {"id": "integer", "machine_id": "integer", "actual_reading": "float", "created_at": "timestamp"},
        "sample_rows": [
            {"id": 100, "machine_id": 10, "actual_reading": 4.2, "created_at": "2024-05-01T10:00:00Z"}
        ],
        "recursive_rows": [
            {"id": 101, "machine_id": 10, "actual_reading": 4.4, "created_at": "2024-05-01T11:00:00Z"}
        ],
        "relationships": [
            {"column": "machine_id", "references_table": "machine_master", "references_column": "id"}
        ]
    },
    "auth_user": {
        "columns": {"id": "integer", "username": "varchar", "email": "varchar"},
        "sample_rows": [{"id": 5, "username": "qc_lead", "email": "lead@example.com"}],
        "relationships": []
    },
    "django_session": {
        "columns": {"session_key": "varchar"},
        "sample_rows": [],
        "relationships": []
    }
}

ORDERS_SCHEMA = {
    "orders": {
        "columns": {"id": "integer", "customer_id": "integer"},
        "sample_rows": [{"id": 1, "customer_id": 42}],
        "relationships": [
            {"column": "customer_id", "references_table": "customers", "references_column": "id"}
        ]
    },
    "customers": {
        "columns": {"id": "integer", "name": "varchar"},
        "sample_rows": [{"id": 42, "name": "Acme"}],
        "relationships": []
    }
}


@pytest.fixture
def qc_schema():
    """Fresh copy of the QC schema export."""
    return copy.deepcopy(QC_SCHEMA)


@pytest.fixture
def orders_schema():
    """Two-table orders -> customers schema."""
    return copy.deepcopy(ORDERS_SCHEMA)
