"""Search index port interface for full-text operations."""

from typing import Protocol

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """Single ranked hit."""

    id: str = Field(..., description="Document identifier")
    score: float = Field(..., description="Relevance score")


class SearchPage(BaseModel):
    """A page of ranked hits plus the total match count."""

    total: int = Field(0, ge=0, description="Total number of matching documents")
    hits: list[SearchHit] = Field(default_factory=list)


class SearchIndexPort(Protocol):
    """Port interface for search index operations.

    Adapter: Tantivy full-text search.

    Side effects: Reads/writes index directory.
    """

    def add_document(self, document_id: str, name: str, text: str) -> None:
        """Add or replace the searchable text of a document.

        Args:
            document_id: Identifier shared with the document store
            name: Display name (also searchable)
            text: Full text
        """
        ...

    def delete_document(self, document_id: str) -> None:
        """Remove a document from the index."""
        ...

    def search(self, query: str, *, limit: int = 10, offset: int = 0) -> SearchPage:
        """Search index.

        Queries containing whitespace are phrase queries, otherwise term queries.

        Raises:
            ValueError: If the query is empty or cannot be parsed
        """
        ...

    def close(self) -> None:
        """Flush and release the index."""
        ...
