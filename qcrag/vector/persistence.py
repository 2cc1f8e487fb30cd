"""
JSON mirror of the in-memory store, one file per namespace.

The in-process state stays authoritative: read and write failures are logged
and swallowed.
"""

import json
import re
from pathlib import Path
from typing import List, Union

from util.logging import logger
from .types import VectorRecord

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonNamespacePersistence:
    """Loads and saves namespaces as `<storage_dir>/<namespace>.json`."""

    def __init__(self, storage_dir: Union[str, Path] = "./.vector_storage"):
        self.storage_dir = Path(storage_dir)

    def path_for(self, namespace: str) -> Path:
        return self.storage_dir / f"{_UNSAFE_CHARS.sub('_', namespace)}.json"

    def load(self, namespace: str) -> List[VectorRecord]:
        path = self.path_for(namespace)
        if not path.exists():
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [VectorRecord.from_dict(item) for item in data or []]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to load namespace '{namespace}' from {path}: {e}")
            return []

    def save(self, namespace: str, records: List[VectorRecord]) -> None:
        path = self.path_for(namespace)
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in records], f, indent=2, default=str)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save namespace '{namespace}' to {path}: {e}")

    def delete(self, namespace: str) -> None:
        path = self.path_for(namespace)
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete namespace file {path}: {e}")
