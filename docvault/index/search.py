"""Query construction and snippet helpers for full-text search."""

from __future__ import annotations

import re

_QUERY_SPECIALS = re.compile(r"[+\-!(){}[\]^\"~*?:\\/|&<>=]")


def is_phrase_query(term: str) -> bool:
    """True when ``term`` contains whitespace and should match as a phrase."""
    return any(char.isspace() for char in term.strip())


def build_query_string(term: str) -> str:
    """Turn a user search term into Tantivy query syntax.

    Terms containing whitespace become a quoted phrase query; single terms are
    stripped of query-syntax characters and matched as plain terms.

    Raises:
        ValueError: If the term is empty after cleaning
    """
    cleaned = term.strip()
    if not cleaned:
        raise ValueError("Query cannot be empty")

    if is_phrase_query(cleaned):
        words = [_QUERY_SPECIALS.sub(" ", word).strip() for word in cleaned.split()]
        phrase = " ".join(word for word in words if word)
        if not phrase:
            raise ValueError("Query cannot be empty")
        return f'"{phrase}"'

    single = _QUERY_SPECIALS.sub(" ", cleaned).strip()
    if not single:
        raise ValueError("Query cannot be empty")
    return single


def extract_snippet(
    text: str,
    query: str,
    max_length: int = 200,
    context_chars: int = 80,
) -> str:
    """Extract a snippet from text showing the query term in context.

    Args:
        text: Full document text
        query: Search term as typed by the user
        max_length: Maximum snippet length in characters (default: 200)
        context_chars: Characters to show before/after match (default: 80)

    Returns:
        Snippet with search term in context, or start of text if no match

    Examples:
        >>> extract_snippet("This is a long document about contracts.", "contract")
        'This is a long document about contracts.'
        >>> extract_snippet("Short text", "missing")
        'Short text'
    """
    if not text or not query:
        return ""

    # Normalize whitespace
    text = " ".join(text.split())

    if is_phrase_query(query):
        terms = [" ".join(query.split())]
    else:
        terms = [query.strip()]
    terms = [term for term in terms if len(term) >= 2]

    best_match_pos = None
    best_term = None
    for term in terms:
        match = re.search(re.escape(term), text, re.IGNORECASE)
        if match and (best_match_pos is None or match.start() < best_match_pos):
            best_match_pos = match.start()
            best_term = term

    if best_match_pos is None:
        # No match found, return start of document
        if len(text) <= max_length:
            return text
        return text[:max_length] + "..."

    start = max(0, best_match_pos - context_chars)
    end = min(len(text), best_match_pos + len(best_term or "") + context_chars)
    if end - start > max_length:
        end = start + max_length

    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."

    return snippet.strip()
