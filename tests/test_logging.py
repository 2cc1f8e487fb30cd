"""
Tests for structured operation logging.
"""

import logging

from util.logging import StructuredLogger, logger, sanitize_payload


def test_global_logger_name():
    assert logger.logger.name == "qcrag"


def test_handler_is_added_once():
    first = StructuredLogger("qcrag.test_handlers")
    second = StructuredLogger("qcrag.test_handlers")
    assert first.logger is second.logger
    assert len(second.logger.handlers) == 1


def test_log_operation_levels(caplog):
    structured = StructuredLogger("qcrag.test_levels")

    with caplog.at_level(logging.INFO, logger="qcrag.test_levels"):
        structured.log_operation("ingest", "success", {"chunks": 3})
        structured.log_operation("ingest", "failed")

    assert caplog.records[0].levelno == logging.INFO
    assert caplog.records[0].getMessage() == "Operation: ingest, Status: success, Details: {'chunks': 3}"
    assert caplog.records[1].levelno == logging.WARNING


def test_backend_switch_message(caplog):
    structured = StructuredLogger("qcrag.test_switch")

    with caplog.at_level(logging.INFO, logger="qcrag.test_switch"):
        structured.log_backend_switch("ChromaDB", "In-Memory", "x" * 500)

    message = caplog.records[0].getMessage()
    assert "vector.backend_switch" in message
    assert "'from': 'ChromaDB'" in message
    assert "x" * 201 not in message


def test_query_log_truncates_question(caplog):
    structured = StructuredLogger("qcrag.test_query")

    with caplog.at_level(logging.INFO, logger="qcrag.test_query"):
        structured.log_query("qc", 5, 2, "q" * 300)

    message = caplog.records[0].getMessage()
    assert "'hits': 2" in message
    assert "q" * 100 + "..." in message
    assert "q" * 101 not in message


def test_sanitize_payload():
    payload = {
        "text": "t" * 150,
        "embedding": [0.1, 0.2],
        "nested": {"api_key": "secret-value", "items": ["short", "s" * 120]},
        "count": 3
    }

    sanitized = sanitize_payload(payload)

    assert sanitized["text"] == "t" * 100 + "..."
    assert sanitized["embedding"] == "[REDACTED]"
    assert sanitized["nested"]["api_key"] == "[REDACTED]"
    assert sanitized["nested"]["items"] == ["short", "s" * 100 + "..."]
    assert sanitized["count"] == 3
