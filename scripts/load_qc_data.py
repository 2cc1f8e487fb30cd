#!/usr/bin/env python3
"""
QC data loader.

Reads a table-keyed schema JSON export and ingests every row, narrated with
its foreign-key relationships, into the configured vector store.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from qcrag.core.config import (
    MAX_RELATIONSHIP_DEPTH,
    QC_CHUNK_OVERLAP,
    QC_CHUNK_SIZE,
    QC_NAMESPACE,
    get_embedding_provider,
    get_vector_store,
)
from qcrag.core.errors import QCRagError
from qcrag.core.ingestion import IngestionService
from qcrag.core.schema_mapper import DynamicSchemaMapper


def build_parser():
    parser = argparse.ArgumentParser(
        description="Ingest a QC schema export into the vector store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s schema.json                       # Ingest into the default QC namespace
  %(prog)s schema.json --namespace plant_a   # Ingest into another namespace
  %(prog)s schema.json --docs                # Print schema documentation only

Environment variables:
- VECTOR_PROVIDER=adaptive|memory|chroma (default adaptive)
- CHROMA_HOST / CHROMA_PORT (durable backend location)
- EMBED_PROVIDER=hash|sentence_transformers (default hash)
        """
    )

    parser.add_argument("schema_file", help="Path to the schema JSON file")
    parser.add_argument("--namespace", "-n", default=QC_NAMESPACE, help="Target namespace")
    parser.add_argument("--chunk-size", type=int, default=QC_CHUNK_SIZE, help="Chunk size in characters")
    parser.add_argument("--chunk-overlap", type=int, default=QC_CHUNK_OVERLAP, help="Chunk overlap in characters")
    parser.add_argument("--max-depth", type=int, default=MAX_RELATIONSHIP_DEPTH, help="Relationship narrative depth")
    parser.add_argument("--docs", action="store_true", help="Print schema documentation instead of ingesting")
    return parser


def load_document(path):
    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)
    if not isinstance(document, dict):
        raise ValueError("schema file must contain a JSON object keyed by table name")
    return document


async def ingest(document, args):
    vector_store = get_vector_store()
    wait_until_ready = getattr(vector_store, "wait_until_ready", None)
    if callable(wait_until_ready):
        await wait_until_ready()

    service = IngestionService(vector_store, get_embedding_provider())
    return await service.ingest_schema_document(
        document,
        namespace=args.namespace,
        chunk_size=args.chunk_size,
        chunk_overlap=args.chunk_overlap,
        max_relationship_depth=args.max_depth
    )


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        document = load_document(args.schema_file)
    except (OSError, ValueError) as e:
        print(f"ERROR: Could not read schema file: {e}")
        return 1

    if args.docs:
        print(DynamicSchemaMapper(document).generate_schema_documentation())
        return 0

    try:
        result = asyncio.run(ingest(document, args))
    except QCRagError as e:
        print(f"ERROR: Ingestion failed: {e}")
        return 1

    print(f"Ingested {args.schema_file} into '{result.namespace}'")
    print(f"Records processed: {result.records_processed}")
    print(f"Chunks created: {result.chunks_created}")
    print(f"Storage: {result.storage_type}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
