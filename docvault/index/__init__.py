"""Search indexing and querying."""

from docvault.index.build import create_schema, open_index
from docvault.index.search import build_query_string, extract_snippet

__all__ = ["create_schema", "open_index", "build_query_string", "extract_snippet"]
