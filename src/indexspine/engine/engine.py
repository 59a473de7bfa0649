"""
Index engine: the one object callers hold.

Manifesto:
    Callers want to hand over a document and later ask which documents
    contain some words.  They should not have to wire a database adapter,
    a store, a tokenizer, a worker pool and a query engine themselves.
    ``IndexEngine`` assembles those pieces, owns their lifecycle and
    exposes the ingestion and query operations side by side.

Architecture:
    ::

        IndexEngine(adapter=SQLiteAdapter(":memory:"), tokenizer=Tokenizer())
          ├── IndexStore            ─ schema ensured on construction
          ├── IngestionCoordinator  ─ add / add_async / add_and_wait / cancel
          ├── QueryEngine           ─ search / resolve_guids / get_* / exists
          ├── delete_by_guid / delete_by_handle
          ├── backup(destination)
          └── close()               ─ cancel, drain, disconnect

        IndexEngine.from_settings(IndexSettings())  ─ env-driven construction

Examples:
    >>> with IndexEngine() as engine:
    ...     doc = Document.create(title="Foxes", handle="mem://fox", data=b"quick brown fox")
    ...     _ = engine.add_and_wait(doc)
    ...     [d.title for d in engine.search(["fox"])]
    ['Foxes']

Tags:
    engine, facade, indexing, search, lifecycle, index-spine
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Future
from typing import TYPE_CHECKING

from indexspine.core.adapters import DatabaseAdapter, SQLiteAdapter
from indexspine.core.errors import ValidationError
from indexspine.core.logging import get_logger
from indexspine.core.protocols import LogSink
from indexspine.engine.filters import Expression
from indexspine.engine.ingestion import IngestionCoordinator, IngestResult
from indexspine.engine.models import Document
from indexspine.engine.query import QueryEngine, SearchQuery
from indexspine.engine.store import IndexStore
from indexspine.engine.tokenizer import Tokenizer

if TYPE_CHECKING:
    from indexspine.core.settings import IndexSettings

logger = get_logger(__name__)


class IndexEngine:
    """Document indexing and term search over a single database.

    Args:
        adapter: Database adapter; defaults to an in-memory SQLite database.
        tokenizer: Term extractor; defaults to ``Tokenizer()``.
        batch_size: Index entries per insert statement.
        max_workers: Ingestion worker pool size.
        serialize_same_identity: Serialize ingestions sharing a GUID or handle.
        logger: Optional diagnostic sink receiving ``"[IndexEngine] ..."`` strings.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter | None = None,
        tokenizer: Tokenizer | None = None,
        *,
        batch_size: int = 1000,
        max_workers: int = 32,
        serialize_same_identity: bool = True,
        logger: LogSink | None = None,
    ) -> None:
        self._adapter = adapter or SQLiteAdapter()
        self._adapter.connect()
        self._store = IndexStore(self._adapter)
        self._store.ensure_schema()
        self._ingestion = IngestionCoordinator(
            self._store,
            tokenizer or Tokenizer(),
            batch_size=batch_size,
            max_workers=max_workers,
            serialize_same_identity=serialize_same_identity,
            logger=logger,
        )
        self._query = QueryEngine(self._store, logger=logger)
        self._closed = False

    @classmethod
    def from_settings(cls, settings: IndexSettings | None = None) -> IndexEngine:
        """Build an engine from :class:`IndexSettings` (environment by default)."""
        if settings is None:
            from indexspine.core.settings import IndexSettings

            settings = IndexSettings()
        tokenizer = Tokenizer(
            min_length=settings.term_minimum_length,
            delimiters=settings.term_delimiters,
            ignore_words=settings.ignore_words,
        )
        return cls(
            SQLiteAdapter(settings.database_path),
            tokenizer,
            batch_size=settings.batch_size,
            max_workers=settings.max_indexing_threads,
            serialize_same_identity=settings.serialize_same_identity,
        )

    # -- Components --------------------------------------------------------

    @property
    def store(self) -> IndexStore:
        return self._store

    @property
    def ingestion(self) -> IngestionCoordinator:
        return self._ingestion

    @property
    def query(self) -> QueryEngine:
        return self._query

    @property
    def log_sink(self) -> LogSink | None:
        return self._ingestion.log_sink

    @log_sink.setter
    def log_sink(self, value: LogSink | None) -> None:
        self._ingestion.log_sink = value
        self._query.log_sink = value

    # -- Ingestion ---------------------------------------------------------

    def add(self, document: Document, tags: Iterable[str] | None = None) -> Future[IngestResult]:
        """Fire-and-forget ingestion."""
        return self._ingestion.submit(document, tags)

    async def add_async(self, document: Document, tags: Iterable[str] | None = None) -> IngestResult:
        return await self._ingestion.submit_async(document, tags)

    def add_and_wait(
        self,
        document: Document,
        tags: Iterable[str] | None = None,
        timeout: float | None = None,
    ) -> IngestResult:
        return self._ingestion.submit_and_wait(document, tags, timeout)

    @property
    def documents_indexing(self) -> list[str]:
        return self._ingestion.documents_indexing

    @property
    def active_ingestions(self) -> int:
        return self._ingestion.active_ingestions

    @property
    def max_workers(self) -> int:
        return self._ingestion.max_workers

    @max_workers.setter
    def max_workers(self, value: int) -> None:
        self._ingestion.max_workers = value

    def cancel(self) -> None:
        self._ingestion.cancel()

    # -- Queries -----------------------------------------------------------

    def resolve_guids(
        self,
        terms: Iterable[str],
        start_index: int | None = None,
        max_results: int | None = None,
        filter: Expression | None = None,
    ) -> list[str]:
        return self._query.resolve_guids(terms, start_index, max_results, filter)

    def search(
        self,
        terms: Iterable[str] | SearchQuery,
        start_index: int | None = None,
        max_results: int | None = None,
        filter: Expression | None = None,
        document_filter: Expression | None = None,
    ) -> list[Document]:
        """Documents containing any of ``terms``; accepts a :class:`SearchQuery` too."""
        if isinstance(terms, SearchQuery):
            return self._query.execute(terms)
        return self._query.search(terms, start_index, max_results, filter, document_filter)

    def get_by_guid(self, guid: str) -> Document | None:
        return self._query.get_by_guid(guid)

    def get_by_handle(self, handle: str) -> Document | None:
        return self._query.get_by_handle(handle)

    def exists(self, guid: str | None = None, handle: str | None = None) -> bool:
        return self._query.exists(guid=guid, handle=handle)

    def is_indexed(self, handle: str) -> bool:
        return self._query.is_indexed(handle)

    def term_reference_count(self, term: str) -> int:
        return self._query.term_reference_count(term)

    # -- Maintenance -------------------------------------------------------

    def delete_by_guid(self, guid: str) -> int:
        """Remove the document with ``guid`` and its index entries."""
        if not guid:
            raise ValidationError("GUID is required", field="guid")
        removed = self._store.delete_documents_by(guid=guid)
        logger.info("document_deleted", guid=guid, removed=removed)
        return removed

    def delete_by_handle(self, handle: str) -> int:
        """Remove every document registered under ``handle``."""
        if not handle:
            raise ValidationError("Handle is required", field="handle")
        removed = self._store.delete_documents_by(handle=handle)
        logger.info("document_deleted", handle=handle, removed=removed)
        return removed

    def backup(self, destination: str) -> None:
        self._store.backup(destination)

    # -- Lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Cancel in-flight ingestion, drain the pool and disconnect."""
        if self._closed:
            return
        self._closed = True
        self._ingestion.shutdown(wait=True, cancel=True)
        self._adapter.disconnect()
        logger.debug("engine_closed")

    def __enter__(self) -> IndexEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "IndexEngine",
]
