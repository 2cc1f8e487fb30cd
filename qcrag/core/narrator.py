"""
Record-to-text conversion with foreign-key narratives.

Each record is rendered as its own scalar fields followed by short readable
lines describing the rows it references, found by walking the schema's
foreign keys up to a depth limit.
"""

from typing import Any, Dict, List, Optional, Set

from .schema_mapper import DynamicSchemaMapper, RelationType

# Checked in order; first keyword contained in the table name wins
TABLE_TYPE_KEYWORDS = [
    ("user", ("user", "auth_user")),
    ("plant", ("plant",)),
    ("machine", ("machine",)),
    ("operation", ("operation",)),
    ("inspection", ("inspection",)),
    ("item", ("item", "material")),
    ("role", ("role", "group")),
]

GENERIC_DISPLAY_FIELDS = ["name", "title", "description", "id"]
SKIP_FIELDS = ["created_at", "updated_at", "is_active"]
RECORD_SEPARATOR = "\n\n" + "=" * 50 + "\n\n"
MIN_RECORD_TEXT_LENGTH = 50


def record_identity(record: Dict[str, Any]) -> Any:
    """The record's id, or the value of its first field when id is missing."""
    if record.get("id"):
        return record["id"]
    for value in record.values():
        return value
    return None


def _join_present(*values: Any, sep: str = " ") -> str:
    return sep.join(str(v) for v in values if v)


class RelationshipNarrator:
    """Turns records into embeddable text using a loaded DynamicSchemaMapper."""

    def __init__(self, schema_mapper: DynamicSchemaMapper):
        self.schema_mapper = schema_mapper

    def build_relationship_narrative(
        self,
        record: Dict[str, Any],
        table_name: str,
        depth: int = 0,
        max_depth: int = 2,
        visited: Optional[Set[str]] = None
    ) -> List[str]:
        """
        Recursively describe the rows a record references.

        Only outgoing foreign keys are followed. A row is visited at most once
        per call (keyed by table and identity), and recursion stops once depth
        reaches max_depth.

        Returns:
            Flat list of narrative lines in traversal order
        """
        if depth >= max_depth:
            return []

        if visited is None:
            visited = set()

        record_key = f"{table_name}:{record_identity(record)}"
        if record_key in visited:
            return []
        visited.add(record_key)

        narratives = []
        for relation in self.schema_mapper.get_related_tables(table_name):
            if relation.type != RelationType.FOREIGN_KEY:
                continue

            value = record.get(relation.via)
            if not value:
                continue

            referenced = self.schema_mapper.resolve_reference(table_name, relation.via, value)
            if referenced is None:
                continue

            narrative = self.create_human_readable_reference(relation.table, referenced)
            if not narrative:
                continue

            narratives.append(narrative)
            narratives.extend(self.build_relationship_narrative(
                referenced, relation.table, depth + 1, max_depth, visited
            ))

        return narratives

    def identify_table_type(self, table_name: str) -> str:
        name = table_name.lower()
        for table_type, keywords in TABLE_TYPE_KEYWORDS:
            if any(keyword in name for keyword in keywords):
                return table_type
        return "generic"

    def create_human_readable_reference(self, table_name: str, record: Dict[str, Any]) -> Optional[str]:
        """Narrative line for a referenced row, or None if nothing is displayable."""
        table_type = self.identify_table_type(table_name)
        if table_type == "generic":
            return self._generic_narrative(table_name, record)

        builder = getattr(self, f"_{table_type}_narrative")
        return builder(record)

    def _user_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        if record.get("first_name") or record.get("last_name"):
            name = _join_present(record.get("first_name"), record.get("middle_name"), record.get("last_name"))
            parts.append(f"User: {name}")
        elif record.get("username"):
            parts.append(f"User: {record['username']}")

        if record.get("email"):
            parts.append(f"Email: {record['email']}")
        if record.get("phone_number"):
            parts.append(f"Phone: {record['phone_number']}")

        return ", ".join(parts) if parts else None

    def _plant_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        if record.get("plant_name"):
            parts.append(f"Plant: {record['plant_name']}")
        if record.get("plant_id"):
            parts.append(f"ID: {record['plant_id']}")

        location = _join_present(record.get("plant_location_1"), record.get("plant_location_2"), sep=", ")
        if location:
            parts.append(f"Location: {location}")

        return ", ".join(parts) if parts else None

    def _machine_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        if record.get("machine_name"):
            parts.append(f"Machine: {record['machine_name']}")
        if record.get("machine_id"):
            parts.append(f"ID: {record['machine_id']}")
        if record.get("machine_make") and record.get("machine_model"):
            parts.append(f"Make/Model: {record['machine_make']} {record['machine_model']}")

        return ", ".join(parts) if parts else None

    def _operation_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        if record.get("operation_name"):
            parts.append(f"Operation: {record['operation_name']}")
        if record.get("operation_id"):
            parts.append(f"ID: {record['operation_id']}")

        return ", ".join(parts) if parts else None

    def _inspection_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        if record.get("inspection_parameter"):
            parts.append(f"Parameter: {record['inspection_parameter']}")
        if record.get("inspection_frequency"):
            parts.append(f"Frequency: {record['inspection_frequency']}")
        if record.get("LSL") is not None and record.get("USL") is not None:
            parts.append(f"Limits: {record['LSL']} - {record['USL']}")

        return ", ".join(parts) if parts else None

    def _item_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        label = record.get("item_description") or record.get("item_name")
        if label:
            parts.append(f"Item: {label}")
        if record.get("item_code"):
            parts.append(f"Code: {record['item_code']}")
        if record.get("item_type"):
            parts.append(f"Type: {record['item_type']}")

        return ", ".join(parts) if parts else None

    def _role_narrative(self, record: Dict[str, Any]) -> Optional[str]:
        parts = []
        if record.get("name"):
            parts.append(f"Role: {record['name']}")
        if record.get("description"):
            parts.append(f"Description: {record['description']}")

        return ", ".join(parts) if parts else None

    def _generic_narrative(self, table_name: str, record: Dict[str, Any]) -> Optional[str]:
        # Only the first meaningful string field is shown
        for field_name in GENERIC_DISPLAY_FIELDS:
            value = record.get(field_name)
            if isinstance(value, str) and value:
                return f"{table_name} ({field_name}: {value})"
        return None

    def extract_core_data(self, record: Dict[str, Any]) -> List[str]:
        """`key: value` lines for the record's own scalar and list fields."""
        lines = []
        for key, value in record.items():
            if key in SKIP_FIELDS or value is None:
                continue
            if isinstance(value, dict):
                # Nested objects are covered by relationship narratives
                continue
            if isinstance(value, list):
                preview = ", ".join(str(v) for v in value[:3])
                suffix = "..." if len(value) > 3 else ""
                lines.append(f"{key}: [{preview}{suffix}]")
            else:
                lines.append(f"{key}: {value}")
        return lines

    def convert_to_text(
        self,
        record: Dict[str, Any],
        table_name: str = "unknown",
        include_relationships: bool = True,
        max_relationship_depth: int = 2
    ) -> str:
        sections = [f"=== {table_name.upper()} RECORD ==="]
        sections.extend(self.extract_core_data(record))

        if include_relationships:
            relationships = self.build_relationship_narrative(record, table_name, 0, max_relationship_depth)
            if relationships:
                sections.append("\n--- RELATIONSHIPS ---")
                sections.extend(relationships)

        return "\n".join(sections)

    def convert_many_to_text(
        self,
        records: List[Dict[str, Any]],
        table_name: str,
        include_relationships: bool = True,
        max_relationship_depth: int = 2
    ) -> str:
        """Convert several records, dropping ones too short to be useful."""
        texts = []
        for record in records:
            text = self.convert_to_text(record, table_name, include_relationships, max_relationship_depth)
            if len(text.strip()) > MIN_RECORD_TEXT_LENGTH:
                texts.append(text)
        return RECORD_SEPARATOR.join(texts)
