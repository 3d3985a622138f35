"""Tests for the Tantivy index adapter and query helpers."""

from pathlib import Path

import pytest

from docvault.app.adapters import TantivyIndexAdapter
from docvault.index.search import build_query_string, extract_snippet, is_phrase_query


class TestQueryBuilding:
    """Term vs phrase query construction."""

    def test_single_word_is_a_term_query(self):
        assert build_query_string("invoice") == "invoice"
        assert not is_phrase_query("invoice")

    def test_whitespace_makes_a_phrase(self):
        assert build_query_string("  total   due ") == '"total due"'
        assert is_phrase_query("total due")

    def test_query_syntax_is_neutralised(self):
        assert build_query_string("a:b") == "a b"
        assert build_query_string('say "hi"') == '"say hi"'

    @pytest.mark.parametrize("term", ["", "   ", "***", '" "'])
    def test_empty_terms_are_rejected(self, term):
        with pytest.raises(ValueError):
            build_query_string(term)


class TestSnippets:
    def test_snippet_centres_on_match(self):
        text = "x " * 200 + "the rent is overdue " + "y " * 200

        snippet = extract_snippet(text, "overdue", context_chars=20)

        assert "overdue" in snippet
        assert snippet.startswith("...")
        assert snippet.endswith("...")

    def test_phrase_snippet(self):
        snippet = extract_snippet("Invoice 42\ntotal   due soon", "total due")
        assert "total due" in snippet

    def test_no_match_returns_document_start(self):
        assert extract_snippet("Short text", "missing") == "Short text"


class TestTantivyIndexAdapter:
    def test_add_and_search(self):
        index = TantivyIndexAdapter(None)
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "lease.pdf", "The lease renews in May")
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ2", "memo.txt", "Lunch is in May")

        page = index.search("lease")

        assert page.total == 1
        assert [hit.id for hit in page.hits] == ["01HZZZZZZZZZZZZZZZZZZZZZZ1"]

    def test_name_is_searchable(self):
        index = TantivyIndexAdapter(None)
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "quarterly.pdf", "")

        assert index.search("quarterly").total == 1

    def test_phrase_requires_adjacent_words(self):
        index = TantivyIndexAdapter(None)
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "a.txt", "total amount due")
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ2", "b.txt", "amount total due")

        page = index.search("total amount")

        assert [hit.id for hit in page.hits] == ["01HZZZZZZZZZZZZZZZZZZZZZZ1"]

    def test_add_replaces_existing_entry(self):
        index = TantivyIndexAdapter(None)
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "a.txt", "first draft")
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "a.txt", "final version")

        assert index.search("draft").total == 0
        assert index.search("final").total == 1
        assert index.num_docs() == 1

    def test_delete(self):
        index = TantivyIndexAdapter(None)
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "a.txt", "remove me")

        index.delete_document("01HZZZZZZZZZZZZZZZZZZZZZZ1")

        assert index.search("remove").total == 0

    def test_pagination_reports_total(self):
        index = TantivyIndexAdapter(None)
        for number in range(5):
            index.add_document(f"01HZZZZZZZZZZZZZZZZZZZZZZ{number}", f"{number}.txt", "common")

        page = index.search("common", limit=2, offset=2)

        assert page.total == 5
        assert len(page.hits) == 2

    def test_persistent_index_survives_reopen(self, temp_dir: Path):
        index_dir = temp_dir / "index"
        index = TantivyIndexAdapter(index_dir)
        index.add_document("01HZZZZZZZZZZZZZZZZZZZZZZ1", "a.txt", "durable words")
        index.close()
        del index

        reopened = TantivyIndexAdapter(index_dir)
        assert reopened.search("durable").total == 1

    def test_empty_query_raises(self):
        with pytest.raises(ValueError):
            TantivyIndexAdapter(None).search("  ")
