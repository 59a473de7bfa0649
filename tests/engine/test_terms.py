"""Tests for term accumulation."""

from indexspine.engine.terms import accumulate_terms


class TestAccumulateTerms:
    """Test accumulate_terms."""

    def test_counts_occurrences(self):
        """Each term maps to its occurrence count."""
        assert accumulate_terms(["quick", "fox", "quick"]) == {"quick": 2, "fox": 1}

    def test_tags_are_literal_lowercase_terms(self):
        """Tags count as lowercase terms without tokenizing."""
        terms = accumulate_terms(["fox"], tags=["News", "AI", "fox"])
        # tags bypass the length and alpha filters
        assert terms == {"news": 1, "ai": 1, "fox": 2}

    def test_empty_tags_skipped(self):
        """Empty tags are ignored."""
        assert accumulate_terms([], tags=["", "x"]) == {"x": 1}

    def test_nothing_to_accumulate(self):
        """No terms give an empty map."""
        assert accumulate_terms(None) == {}
        assert accumulate_terms([], tags=None) == {}

    def test_consumes_generator(self):
        """A generator of terms is consumed fully."""
        assert accumulate_terms(t for t in ["a", "b", "a"]) == {"a": 2, "b": 1}
