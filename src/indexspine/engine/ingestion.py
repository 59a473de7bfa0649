"""Ingestion Coordinator: concurrent, cancellable document indexing.

WHY
───
Tokenizing a large payload and writing thousands of index entries must not
block the caller.  The coordinator hands every submission to a thread pool,
tracks what is in flight, supersedes earlier versions of the same document,
writes entries in bounded batches and honours a shared cancellation signal.

ARCHITECTURE
────────────
::

    IngestionCoordinator(store, tokenizer, batch_size=1000, max_workers=32)
      ├── .submit(doc, tags)          ─ fire-and-forget → Future[IngestResult]
      ├── .submit_async(doc, tags)    ─ await completion, errors propagate
      ├── .submit_and_wait(doc, tags) ─ blocking form of submit_async
      ├── .documents_indexing         ─ GUIDs registered right now
      ├── .active_ingestions          ─ exact running count
      ├── .cancel()                   ─ raise the shared cancellation signal
      └── .shutdown(wait, cancel)     ─ drain the pool

    Per submission (worker thread):
      register guid → supersede (by guid, then by handle) → insert document
      → tokenize + accumulate → insert entries in batches → deregister

Concurrent submissions sharing a GUID or handle are serialized from the
supersede step through the last batch when ``serialize_same_identity`` is
on; otherwise the last writer wins.

Related modules:
    registry.py : InFlightRegistry / KeyedLock
    store.py    : IndexStore writes
    tokenizer.py: Tokenizer

Example::

    coordinator = IngestionCoordinator(store, Tokenizer())
    result = await coordinator.submit_async(doc, tags=["news"])
    result.terms_recorded
"""

from __future__ import annotations

import asyncio
import functools
import threading
import time
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass

from indexspine.core.errors import CancellationError, ConfigError, IndexSpineError, ValidationError
from indexspine.core.logging import LogContext, get_logger
from indexspine.core.protocols import LogSink
from indexspine.engine.models import Document, IndexEntry, new_guid, utcnow
from indexspine.engine.registry import InFlightRegistry, KeyedLock
from indexspine.engine.store import IndexStore
from indexspine.engine.terms import accumulate_terms
from indexspine.engine.tokenizer import Tokenizer

logger = get_logger(__name__)

LOG_HEADER = "[IndexEngine] "


@dataclass
class IngestResult:
    """Outcome of one ingestion."""

    guid: str
    handle: str
    terms_total: int = 0
    terms_recorded: int = 0
    elapsed_ms: float = 0.0
    ms_per_term: float = 0.0
    cancelled: bool = False
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return not self.cancelled and self.error is None


class IngestionCoordinator:
    """Schedules and runs document ingestions on a worker pool.

    Args:
        store: Index store that receives the writes.
        tokenizer: Term extractor; defaults to ``Tokenizer()``.
        batch_size: Index entries per insert statement (>= 1).
        max_workers: Worker pool size (>= 1). Extra submissions queue.
        serialize_same_identity: Serialize ingestions sharing a GUID or handle.
        logger: Optional diagnostic sink receiving ``"[IndexEngine] ..."`` strings.
    """

    def __init__(
        self,
        store: IndexStore,
        tokenizer: Tokenizer | None = None,
        *,
        batch_size: int = 1000,
        max_workers: int = 32,
        serialize_same_identity: bool = True,
        logger: LogSink | None = None,
    ) -> None:
        if batch_size < 1:
            raise ConfigError(f"batch_size must be one or greater, got {batch_size}")
        if max_workers < 1:
            raise ConfigError(f"max_workers must be one or greater, got {max_workers}")

        self._store = store
        self._tokenizer = tokenizer or Tokenizer()
        self._batch_size = batch_size
        self._max_workers = max_workers
        self._sink = logger
        self._registry = InFlightRegistry()
        self._identity_locks = KeyedLock() if serialize_same_identity else None
        self._cancel = threading.Event()
        self._pool_lock = threading.Lock()
        self._pool: ThreadPoolExecutor | None = None
        self._retired: list[ThreadPoolExecutor] = []

    # -- Configuration -----------------------------------------------------

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    @tokenizer.setter
    def tokenizer(self, value: Tokenizer) -> None:
        self._tokenizer = value

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @batch_size.setter
    def batch_size(self, value: int) -> None:
        if value < 1:
            raise ConfigError(f"batch_size must be one or greater, got {value}")
        self._batch_size = value

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @max_workers.setter
    def max_workers(self, value: int) -> None:
        """Resize the pool; work already queued on the old pool still runs.

        The old pool stops accepting work but is kept until :meth:`shutdown`
        drains it.
        """
        if value < 1:
            raise ConfigError(f"max_workers must be one or greater, got {value}")
        with self._pool_lock:
            self._max_workers = value
            old, self._pool = self._pool, None
            if old is not None:
                self._retired.append(old)
        if old is not None:
            old.shutdown(wait=False)

    @property
    def log_sink(self) -> LogSink | None:
        return self._sink

    @log_sink.setter
    def log_sink(self, value: LogSink | None) -> None:
        self._sink = value

    # -- Observability -----------------------------------------------------

    @property
    def documents_indexing(self) -> list[str]:
        """GUIDs submitted and not yet finished (queued or running)."""
        return self._registry.snapshot()

    @property
    def active_ingestions(self) -> int:
        """Ingestions executing on a worker right now."""
        return self._registry.active

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    # -- Submission --------------------------------------------------------

    def submit(self, document: Document, tags: Iterable[str] | None = None) -> Future[IngestResult]:
        """Schedule ingestion and return immediately.

        Failures are logged and reported on the returned future's
        :class:`IngestResult`; they are never raised from it.
        """
        doc = self._prepare(document)
        return self._schedule(doc, tags, raise_errors=False)

    async def submit_async(self, document: Document, tags: Iterable[str] | None = None) -> IngestResult:
        """Schedule ingestion and wait for it; store failures propagate."""
        doc = self._prepare(document)
        return await asyncio.wrap_future(self._schedule(doc, tags, raise_errors=True))

    def submit_and_wait(
        self,
        document: Document,
        tags: Iterable[str] | None = None,
        timeout: float | None = None,
    ) -> IngestResult:
        """Blocking form of :meth:`submit_async` for synchronous callers."""
        doc = self._prepare(document)
        return self._schedule(doc, tags, raise_errors=True).result(timeout=timeout)

    def cancel(self) -> None:
        """Raise the cancellation signal for every in-flight ingestion."""
        if not self._cancel.is_set():
            self._cancel.set()
            in_flight = len(self._registry)
            self._log("warning" if in_flight else "debug", "cancellation_requested",
                      "cancellation requested", in_flight=in_flight)

    def shutdown(self, wait: bool = True, cancel: bool = False) -> None:
        """Stop accepting work; optionally cancel in-flight ingestions.

        Pools retired by resizing ``max_workers`` are drained too.
        """
        if cancel:
            self.cancel()
        with self._pool_lock:
            pools = [*self._retired, self._pool] if self._pool is not None else list(self._retired)
            self._pool = None
            self._retired = []
        for pool in pools:
            pool.shutdown(wait=wait, cancel_futures=cancel)

    # -- Internals: scheduling ---------------------------------------------

    def _prepare(self, document: Document | None) -> Document:
        if document is None:
            raise ValidationError("Document is required", field="document")
        document.validate()
        if not document.guid:
            document.guid = new_guid()
        if document.added is None:
            document.added = utcnow()
        return document

    def _executor(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="index-worker",
                )
            return self._pool

    def _schedule(self, doc: Document, tags: Iterable[str] | None, *, raise_errors: bool) -> Future[IngestResult]:
        tag_list = list(tags) if tags else []
        if self._cancel.is_set():
            self._log("warning", "submission_rejected", f"[{doc.guid}] cancellation requested; not indexing",
                      guid=doc.guid)
            future: Future[IngestResult] = Future()
            future.set_result(IngestResult(guid=doc.guid, handle=doc.handle, cancelled=True))
            return future

        self._registry.register(doc.guid)
        future = self._executor().submit(self._run, doc, tag_list, raise_errors)
        future.add_done_callback(functools.partial(self._release_cancelled, doc.guid))
        return future

    def _release_cancelled(self, guid: str, future: Future[IngestResult]) -> None:
        # queued work dropped by shutdown(cancel=True) never reaches _run
        if future.cancelled():
            self._registry.deregister(guid)

    # -- Internals: one ingestion ------------------------------------------

    def _run(self, doc: Document, tags: list[str], raise_errors: bool) -> IngestResult:
        header = f"[{doc.guid}] "
        result = IngestResult(guid=doc.guid, handle=doc.handle)
        started = time.perf_counter()

        try:
            with LogContext(guid=doc.guid, handle=doc.handle), self._registry.running():
                self._log("debug", "ingestion_started", header + "beginning processing")
                with self._identity_scope(doc):
                    self._supersede(doc, header)

                    self._checkpoint()
                    self._store.upsert_document(doc)
                    self._log("debug", "document_written", header + "created document database entry")

                    self._checkpoint()
                    terms = self._build_terms(doc, tags, header)
                    result.terms_total = len(terms)
                    self._write_entries(doc, terms, result, header)
            return result

        except CancellationError:
            result.cancelled = True
            self._log("warning", "ingestion_cancelled", header + "cancellation requested",
                      terms_recorded=result.terms_recorded, terms_total=result.terms_total)
            return result

        except Exception as e:
            result.error = str(e)
            if isinstance(e, IndexSpineError):
                e.with_context(guid=doc.guid, handle=doc.handle)
            logger.error("ingestion_failed", guid=doc.guid, handle=doc.handle,
                         error=str(e), error_type=type(e).__name__)
            if self._sink is not None:
                self._sink(f"{LOG_HEADER}{header}exception encountered: {e!r}")
            if raise_errors:
                raise
            return result

        finally:
            self._registry.deregister(doc.guid)
            result.elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            if result.terms_recorded > 0:
                result.ms_per_term = round(result.elapsed_ms / result.terms_recorded, 2)
            self._log(
                "info",
                "ingestion_finished",
                f"{header}finished; {result.terms_recorded}/{result.terms_total} terms "
                f"[{result.elapsed_ms}ms total, {result.ms_per_term}ms/term]",
                guid=doc.guid,
                terms_recorded=result.terms_recorded,
                terms_total=result.terms_total,
                elapsed_ms=result.elapsed_ms,
                ms_per_term=result.ms_per_term,
            )

    def _identity_scope(self, doc: Document):
        if self._identity_locks is None:
            return nullcontext()
        return self._identity_locks.hold([f"guid:{doc.guid.lower()}", f"handle:{doc.handle.lower()}"])

    def _supersede(self, doc: Document, header: str) -> None:
        self._checkpoint()
        removed = self._store.delete_documents_by(guid=doc.guid)
        self._log("debug", "superseded_by_guid", header + f"deleting existing documents with GUID {doc.guid}",
                  removed=removed)

        self._checkpoint()
        removed = self._store.delete_documents_by(handle=doc.handle)
        self._log("debug", "superseded_by_handle", header + f"deleting existing documents with handle {doc.handle}",
                  removed=removed)

    def _build_terms(self, doc: Document, tags: list[str], header: str) -> dict[str, int]:
        if tags:
            self._log("debug", "processing_tags", header + "processing tags", tags=len(tags))
        terms = accumulate_terms(self._tokenizer.tokenize(doc.data), tags)
        if terms:
            self._log("debug", "terms_extracted", header + f"detected {len(terms)} terms in document",
                      terms_total=len(terms))
        else:
            self._log("info", "no_terms_found", header + "no terms found")
        return terms

    def _write_entries(self, doc: Document, terms: dict[str, int], result: IngestResult, header: str) -> None:
        batch: list[IndexEntry] = []
        for term, count in terms.items():
            batch.append(IndexEntry(term=term, ref_count=count, doc_guid=doc.guid))
            if len(batch) >= self._batch_size:
                self._flush(batch, result, header)
                batch = []
        if batch:
            self._flush(batch, result, header)

    def _flush(self, batch: list[IndexEntry], result: IngestResult, header: str) -> None:
        self._checkpoint()
        result.terms_recorded += self._store.insert_index_entries(batch)
        self._log("debug", "batch_recorded",
                  header + f"recorded {result.terms_recorded}/{result.terms_total} terms",
                  terms_recorded=result.terms_recorded, terms_total=result.terms_total)

    def _checkpoint(self) -> None:
        if self._cancel.is_set():
            raise CancellationError("Ingestion cancelled")

    def _log(self, level: str, event: str, message: str, **kwargs) -> None:
        getattr(logger, level)(event, **kwargs)
        if self._sink is not None:
            self._sink(LOG_HEADER + message)


__all__ = [
    "IngestResult",
    "IngestionCoordinator",
    "LOG_HEADER",
]
