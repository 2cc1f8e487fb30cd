"""
Structured operation logging for ingestion, retrieval and vector backends.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for schema, vector store and pipeline operations."""

    def __init__(self, name: str = "qcrag"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_vector_operation(self, operation: str, namespace: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector store operation scoped to a namespace."""
        log_details = {"namespace": namespace}
        if details:
            log_details.update(details)

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_backend_switch(self, from_backend: str, to_backend: str, reason: str):
        """Log a vector backend transition."""
        log_details = {
            "from": from_backend,
            "to": to_backend,
            "reason": reason[:200] if reason else ""
        }
        self.log_operation("vector.backend_switch", "switched", log_details)

    def log_schema_load(self, table_count: int, relationship_count: int):
        """Log a schema (re)load."""
        self.log_operation("schema.load", "success", {
            "tables": table_count,
            "relationships": relationship_count
        })

    def log_ingestion(self, namespace: str, records: int, chunks: int, status: str = "success", details: Dict[str, Any] = None):
        """Log an ingestion run."""
        log_details = {
            "namespace": namespace,
            "records": records,
            "chunks": chunks
        }
        if details:
            log_details.update(details)

        self.log_operation("ingest", status, log_details)

    def log_query(self, namespace: str, top_k: int, hits: int, question: str = None):
        """Log a retrieval query."""
        log_details = {
            "namespace": namespace,
            "top_k": top_k,
            "hits": hits
        }
        if question is not None:
            log_details["question"] = sanitize_payload(question)

        self.log_operation("query", "success", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, max_length: int = 100, redact_fields: List[str] = None) -> Any:
    """Truncate long strings and redact named fields before logging."""
    if redact_fields is None:
        redact_fields = ['embedding', 'password', 'secret', 'api_key']

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if k in redact_fields:
                sanitized[k] = "[REDACTED]"
            else:
                sanitized[k] = sanitize_payload(v, max_length, redact_fields)
        return sanitized
    elif isinstance(payload, str):
        return payload[:max_length] + "..." if len(payload) > max_length else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, max_length, redact_fields) for item in payload]
    else:
        return payload
