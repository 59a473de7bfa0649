"""Tests for QueryEngine and SearchQuery."""

import sqlite3

import pytest

from indexspine.core.errors import ValidationError
from indexspine.engine.filters import Expression, Operator
from indexspine.engine.models import Document, IndexEntry
from indexspine.engine.query import SearchQuery


@pytest.fixture
def corpus(engine, make_document):
    """Three indexed documents with overlapping vocabulary."""
    docs = {
        "fox": make_document(title="Fox", handle="mem://fox", source="web", data=b"quick brown fox"),
        "bear": make_document(title="Bear", handle="mem://bear", source="upload", data=b"brown bear bear"),
        "whale": make_document(title="Whale", handle="mem://whale", source="web", data=b"blue whale"),
    }
    for doc in docs.values():
        engine.add_and_wait(doc)
    return docs


class TestResolveGuids:
    """Test term-to-GUID resolution."""

    def test_matches_any_term(self, engine, corpus):
        """A document matches when it has any of the terms."""
        guids = engine.resolve_guids(["fox", "whale"])
        assert set(guids) == {corpus["fox"].guid, corpus["whale"].guid}

    def test_case_insensitive_and_lowercase_output(self, engine, corpus):
        """Terms match without case; GUIDs come back lowercase."""
        guids = engine.resolve_guids(["BROWN"])
        assert set(guids) == {corpus["fox"].guid.lower(), corpus["bear"].guid.lower()}
        assert all(g == g.lower() for g in guids)

    def test_distinct(self, engine, corpus):
        """Each GUID appears once."""
        assert engine.resolve_guids(["brown", "bear"]).count(corpus["bear"].guid) == 1

    def test_pagination_over_distinct_guids(self, engine, corpus):
        """Paging windows the distinct GUID list."""
        everything = engine.resolve_guids(["brown", "blue"])
        assert len(everything) == 3
        assert engine.resolve_guids(["brown", "blue"], start_index=1, max_results=1) == everything[1:2]
        assert engine.resolve_guids(["brown", "blue"], start_index=2) == everything[2:]

    def test_entry_filter(self, engine, corpus):
        """An entry filter narrows matches."""
        heavy = Expression("refcount", Operator.GREATER_THAN, 1)
        assert engine.resolve_guids(["bear", "fox"], filter=heavy) == [corpus["bear"].guid]

    @pytest.mark.parametrize("terms", [[], [""], None, "fox"])
    def test_invalid_terms(self, engine, terms):
        """Missing, empty or bare-string terms are rejected."""
        with pytest.raises(ValidationError):
            engine.resolve_guids(terms)


class TestSearch:
    """Test document search."""

    def test_returns_documents(self, engine, corpus):
        """Search returns the matching documents."""
        titles = sorted(d.title for d in engine.search(["brown"]))
        assert titles == ["Bear", "Fox"]

    def test_no_matches_logs_and_returns_empty(self, engine, corpus, log_sink):
        """No matches returns an empty list and logs it."""
        assert engine.search(["unicorn"]) == []
        assert log_sink.contains("no document GUIDs found")

    def test_max_results_caps_documents(self, engine, corpus):
        """max_results caps the documents returned."""
        assert len(engine.search(["brown", "blue"], max_results=2)) == 2

    def test_document_filter(self, engine, corpus):
        """A document filter narrows results on document columns."""
        web_only = Expression("source", Operator.EQUALS, "web")
        titles = sorted(d.title for d in engine.search(["brown", "blue"], document_filter=web_only))
        assert titles == ["Fox", "Whale"]

    def test_search_query_object(self, engine, corpus):
        """A SearchQuery can be passed in place of terms."""
        query = SearchQuery(terms=("whale",))
        assert [d.title for d in engine.search(query)] == ["Whale"]
        assert [d.title for d in engine.query.execute(query)] == ["Whale"]

    def test_document_with_no_terms_never_matches(self, engine, make_document):
        """A document without terms is stored but never found."""
        doc = make_document(data=b"")
        engine.add_and_wait(doc)
        assert engine.get_by_guid(doc.guid) is not None
        assert engine.search(["anything"]) == []

    def test_more_matches_than_bound_variable_limit(self, engine):
        """Search works when matches outnumber the bound-variable limit."""
        for i in range(25):
            engine.store.upsert_document(Document.create(guid=f"g{i:02d}", title=f"Doc {i}", handle=f"mem://{i}"))
        engine.store.insert_index_entries(
            [IndexEntry(term="fox", ref_count=1, doc_guid=f"g{i:02d}") for i in range(25)]
        )
        engine.store.adapter.get_connection().setlimit(sqlite3.SQLITE_LIMIT_VARIABLE_NUMBER, 10)

        assert [d.guid for d in engine.search(["fox"])] == [f"g{i:02d}" for i in range(25)]

        teens = Expression("title", Operator.LIKE, "Doc 1%")
        found = engine.search(["fox"], document_filter=teens)
        assert [d.title for d in found] == ["Doc 1"] + [f"Doc {i}" for i in range(10, 20)]
        assert len(engine.search(["fox"], max_results=3)) == 3


class TestSearchQuery:
    """Test SearchQuery validation."""

    def test_drops_empty_terms(self):
        """Empty terms are dropped."""
        assert SearchQuery(terms=["fox", ""]).terms == ("fox",)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"terms": []},
            {"terms": "fox"},
            {"terms": ["fox"], "start_index": -1},
            {"terms": ["fox"], "max_results": 0},
        ],
    )
    def test_invalid(self, kwargs):
        """Invalid terms or paging are rejected."""
        with pytest.raises(ValidationError):
            SearchQuery(**kwargs)


class TestLookups:
    """Test single-document lookups."""

    def test_get_by_guid(self, engine, corpus):
        """Lookup by GUID returns the document or None."""
        doc = engine.get_by_guid(corpus["fox"].guid)
        assert doc.title == "Fox"
        assert doc.handle == "mem://fox"
        assert engine.get_by_guid("missing") is None

    def test_get_by_handle(self, engine, corpus):
        """Lookup by handle is case-insensitive."""
        assert engine.get_by_handle("MEM://BEAR").guid == corpus["bear"].guid
        assert engine.get_by_handle("mem://missing") is None

    def test_get_by_handle_ambiguous_warns(self, engine, log_sink):
        """A shared handle returns the first document and warns."""
        # rows written directly bypass ingestion's handle supersede
        for guid in ("g1", "g2"):
            engine.store.upsert_document(Document.create(guid=guid, title="t", handle="mem://dup"))
        assert engine.get_by_handle("mem://dup").guid == "g1"
        assert log_sink.contains("2 documents share handle mem://dup")

    @pytest.mark.parametrize("method", ["get_by_guid", "get_by_handle", "is_indexed", "term_reference_count"])
    def test_empty_argument(self, engine, method):
        """Lookups reject empty arguments."""
        with pytest.raises(ValidationError):
            getattr(engine, method)("")

    def test_exists(self, engine, corpus):
        """exists checks by GUID or handle."""
        assert engine.exists(guid=corpus["fox"].guid)
        assert engine.exists(handle="mem://whale")
        assert not engine.exists(handle="mem://missing")
        with pytest.raises(ValidationError):
            engine.exists()

    def test_is_indexed(self, engine, corpus):
        """is_indexed checks by handle."""
        assert engine.is_indexed("mem://fox")
        assert not engine.is_indexed("mem://unicorn")

    def test_term_reference_count_sums_refcounts(self, engine, corpus):
        """Reference count sums occurrences across documents."""
        assert engine.term_reference_count("bear") == 2
        assert engine.term_reference_count("BROWN") == 2
        assert engine.term_reference_count("unicorn") == 0
