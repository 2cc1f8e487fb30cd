"""
Relationship mapping over a table-keyed schema document.

A schema document maps table names to payloads of the form::

    {
        "columns": {"id": "integer", "plant_id": "integer"},
        "sample_rows": [{"id": 1, "plant_id": 7}],
        "recursive_rows": [...],
        "relationships": [
            {"column": "plant_id", "references_table": "plant_master", "references_column": "id"}
        ]
    }

The mapper turns the declared foreign keys into a flat list of directed edges
and answers navigation questions over them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from util.logging import logger


class RelationType(str, Enum):
    FOREIGN_KEY = "foreign_key"
    REFERENCED_BY = "referenced_by"


class TableCategory(str, Enum):
    INSPECTION = "inspection"
    MASTER = "master"
    USER = "user"
    ADMIN = "admin"


CATEGORY_KEYWORDS = {
    TableCategory.INSPECTION: ["inspection", "reading", "schedule"],
    TableCategory.MASTER: ["master", "plant", "machine", "operation", "item"],
    TableCategory.USER: ["auth", "user", "permission"],
    TableCategory.ADMIN: ["django", "session", "migration"],
}

# Documentation section order
CATEGORY_TITLES = [
    ("Inspection & Quality Control", TableCategory.INSPECTION),
    ("Master Data", TableCategory.MASTER),
    ("User Management", TableCategory.USER),
    ("System Tables", TableCategory.ADMIN),
]


@dataclass(frozen=True)
class TableInfo:
    """A table as declared in the schema document."""

    name: str
    columns: Dict[str, str] = field(default_factory=dict)
    sample_rows: List[Dict[str, Any]] = field(default_factory=list)
    recursive_rows: List[Dict[str, Any]] = field(default_factory=list)
    relationships: List[Dict[str, Any]] = field(default_factory=list)

    def all_rows(self) -> List[Dict[str, Any]]:
        """Sample rows followed by recursive rows."""
        return list(self.sample_rows) + list(self.recursive_rows)


@dataclass(frozen=True)
class Relationship:
    """Directed many-to-one edge: from_table.from_column -> to_table.to_column."""

    from_table: str
    from_column: str
    to_table: str
    to_column: Optional[str]


@dataclass(frozen=True)
class RelatedTable:
    table: str
    via: str
    type: RelationType


@dataclass
class SchemaMap:
    tables: Dict[str, TableInfo] = field(default_factory=dict)
    relationships: List[Relationship] = field(default_factory=list)


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_rows(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [row for row in value if isinstance(row, Mapping)]


def _as_relationships(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [
        rel for rel in value
        if isinstance(rel, Mapping) and rel.get("column") and rel.get("references_table")
    ]


def _strict_equal(left: Any, right: Any) -> bool:
    # True must not match 1, "42" must not match 42
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


class DynamicSchemaMapper:
    """Builds and navigates the relationship graph of one loaded schema."""

    def __init__(self, document: Optional[Mapping[str, Any]] = None):
        self._schema_map: Optional[SchemaMap] = None
        if document is not None:
            self.load_schema(document)

    @property
    def schema_map(self) -> Optional[SchemaMap]:
        return self._schema_map

    @property
    def is_loaded(self) -> bool:
        return self._schema_map is not None

    def load_schema(self, document: Mapping[str, Any]) -> SchemaMap:
        """
        Build a SchemaMap from a table-keyed document, replacing any previous one.

        Tables whose payload is not a mapping are skipped. Missing fields fall
        back to empty defaults instead of failing the load. A relationship
        without `references_column` is kept as an edge but never resolves.
        """
        tables: Dict[str, TableInfo] = {}
        relationships: List[Relationship] = []

        for table_name, payload in (document or {}).items():
            if not isinstance(payload, Mapping):
                continue

            rels = _as_relationships(payload.get("relationships"))
            tables[table_name] = TableInfo(
                name=table_name,
                columns=_as_dict(payload.get("columns")),
                sample_rows=_as_rows(payload.get("sample_rows")),
                recursive_rows=_as_rows(payload.get("recursive_rows")),
                relationships=rels,
            )

            for rel in rels:
                relationships.append(Relationship(
                    from_table=table_name,
                    from_column=rel["column"],
                    to_table=rel["references_table"],
                    to_column=rel.get("references_column"),
                ))

        # Single reference swap; readers see either the old or the new map
        self._schema_map = SchemaMap(tables=tables, relationships=relationships)
        logger.log_schema_load(len(tables), len(relationships))
        return self._schema_map

    def table_names(self) -> List[str]:
        if not self.is_loaded:
            return []
        return list(self._schema_map.tables)

    def get_table(self, table_name: str) -> Optional[TableInfo]:
        if not self.is_loaded:
            return None
        return self._schema_map.tables.get(table_name)

    def get_tables_by_category(self, category: Union[TableCategory, str]) -> List[str]:
        """Table names containing any keyword of the category (case-insensitive)."""
        if not self.is_loaded:
            return []

        try:
            keywords = CATEGORY_KEYWORDS[TableCategory(category)]
        except ValueError:
            return []

        return [
            name for name in self._schema_map.tables
            if any(keyword in name.lower() for keyword in keywords)
        ]

    def get_table_category(self, table_name: str) -> str:
        """First of inspection, master or user that lists table_name; "system" otherwise."""
        for category in (TableCategory.INSPECTION, TableCategory.MASTER, TableCategory.USER):
            if table_name in self.get_tables_by_category(category):
                return category.value
        return "system"

    def get_related_tables(self, table_name: str) -> List[RelatedTable]:
        """
        Tables connected to table_name.

        Outgoing foreign keys come first, then incoming references, each in
        declaration order. `via` is always the referencing column.
        """
        if not self.is_loaded:
            return []

        related = []
        for rel in self._schema_map.relationships:
            if rel.from_table == table_name:
                related.append(RelatedTable(table=rel.to_table, via=rel.from_column, type=RelationType.FOREIGN_KEY))

        for rel in self._schema_map.relationships:
            if rel.to_table == table_name:
                related.append(RelatedTable(table=rel.from_table, via=rel.from_column, type=RelationType.REFERENCED_BY))

        return related

    def resolve_reference(self, table_name: str, column_name: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Find the row referenced by table_name.column_name == value.

        Scans the target table's sample rows, then its recursive rows, and
        returns the first row whose referenced column equals value.
        """
        if not self.is_loaded or value is None or value == "":
            return None

        relationship = next(
            (rel for rel in self._schema_map.relationships
             if rel.from_table == table_name and rel.from_column == column_name),
            None
        )
        if relationship is None or relationship.to_column is None:
            return None

        target = self._schema_map.tables.get(relationship.to_table)
        if target is None:
            return None

        for row in target.all_rows():
            if relationship.to_column in row and _strict_equal(row[relationship.to_column], value):
                return row
        return None

    def generate_schema_documentation(self) -> str:
        """Render a markdown overview grouped by category, plus an edge summary."""
        if not self.is_loaded:
            return "No schema loaded"

        lines = ["# Database Schema Documentation\n"]

        for title, category in CATEGORY_TITLES:
            tables = self.get_tables_by_category(category)
            if not tables:
                continue

            lines.append(f"## {title}\n")
            for table_name in tables:
                table = self._schema_map.tables[table_name]
                related = self.get_related_tables(table_name)

                lines.append(f"### {table_name}")
                lines.append(f"**Columns:** {', '.join(table.columns.keys())}")
                lines.append(f"**Records:** {len(table.sample_rows)} samples")

                fk_tables = [f"{r.table} (via {r.via})" for r in related if r.type == RelationType.FOREIGN_KEY]
                ref_tables = [f"{r.table} (via {r.via})" for r in related if r.type == RelationType.REFERENCED_BY]
                if fk_tables:
                    lines.append(f"**References:** {', '.join(fk_tables)}")
                if ref_tables:
                    lines.append(f"**Referenced by:** {', '.join(ref_tables)}")
                lines.append("")

        lines.append("## Relationships Summary\n")
        for rel in self._schema_map.relationships:
            lines.append(f"- **{rel.from_table}**.{rel.from_column} → **{rel.to_table}**.{rel.to_column}")

        return "\n".join(lines)
