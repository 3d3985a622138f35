"""Tantivy schema and index lifecycle for document full text."""

from __future__ import annotations

from pathlib import Path

import tantivy

ID_FIELD = "id"
NAME_FIELD = "name"
BODY_FIELD = "body"

DEFAULT_SEARCH_FIELDS = [BODY_FIELD, NAME_FIELD]


def create_schema() -> tantivy.Schema:
    """Create Tantivy schema for document indexing.

    ``id`` uses the raw tokenizer so it can be deleted by exact term.

    Returns:
        Tantivy schema with required fields
    """
    schema_builder = tantivy.SchemaBuilder()

    schema_builder.add_text_field(ID_FIELD, stored=True, tokenizer_name="raw")
    schema_builder.add_text_field(NAME_FIELD, stored=True)
    schema_builder.add_text_field(BODY_FIELD, stored=False)  # Full text, not stored

    return schema_builder.build()


def open_index(index_dir: Path | None) -> tantivy.Index:
    """Open (or create) the index in ``index_dir``; ``None`` keeps it in memory.

    Args:
        index_dir: Directory to store index

    Returns:
        Tantivy index handle
    """
    schema = create_schema()
    if index_dir is None:
        return tantivy.Index(schema)

    index_dir.mkdir(parents=True, exist_ok=True)
    return tantivy.Index(schema, str(index_dir))
