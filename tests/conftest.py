"""
Shared pytest fixtures and configuration for index-spine tests.

This module provides:
- An in-memory ``IndexEngine`` (and its store) per test
- A recording log sink for ``[IndexEngine]`` diagnostics
- Document factories
- Auto-marking of tests by location

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).

    def test_search(engine, make_document):
        engine.add_and_wait(make_document(data=b"quick fox"))
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Ensure indexspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from indexspine.core.adapters import SQLiteAdapter
from indexspine.engine import Document, IndexEngine, IndexStore, Tokenizer


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if test_path.parts[0] == "cli":
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Engine Fixtures
# =============================================================================


class RecordingSink:
    """Log sink that keeps every message it receives."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)

    def contains(self, fragment: str) -> bool:
        return any(fragment in m for m in self.messages)


@pytest.fixture
def log_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def engine(log_sink: RecordingSink) -> Generator[IndexEngine, None, None]:
    """
    In-memory engine with a small worker pool.

    Closed after the test, which cancels anything still in flight.
    """
    eng = IndexEngine(SQLiteAdapter(":memory:"), Tokenizer(), max_workers=4, logger=log_sink)
    yield eng
    eng.close()


@pytest.fixture
def store() -> Generator[IndexStore, None, None]:
    """Bare store over a fresh in-memory database, schema ensured."""
    adapter = SQLiteAdapter(":memory:")
    adapter.connect()
    st = IndexStore(adapter)
    st.ensure_schema()
    yield st
    adapter.disconnect()


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """
    Factory for valid documents with unique handles.

    Usage:
        doc = make_document(data=b"quick fox", handle="mem://fox")
    """
    counter = {"n": 0}

    def _make(**kwargs) -> Document:
        counter["n"] += 1
        kwargs.setdefault("title", f"Document {counter['n']}")
        kwargs.setdefault("handle", f"mem://doc/{counter['n']}")
        kwargs.setdefault("data", b"")
        return Document.create(**kwargs)

    return _make
