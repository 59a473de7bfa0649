"""Read side of the index: term resolution, search and lookups."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from indexspine.core.errors import ValidationError
from indexspine.core.logging import get_logger
from indexspine.core.protocols import LogSink
from indexspine.engine.filters import Expression, Operator
from indexspine.engine.models import Document
from indexspine.engine.store import IndexStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchQuery:
    """A term search request: terms plus optional paging and filters."""

    terms: tuple[str, ...]
    start_index: int | None = None
    max_results: int | None = None
    filter: Expression | None = field(default=None, compare=False)
    document_filter: Expression | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.terms, str):
            raise ValidationError("Terms must be a collection of strings", field="terms", value=self.terms)
        object.__setattr__(self, "terms", tuple(t for t in self.terms if t))
        if not self.terms:
            raise ValidationError("At least one search term is required", field="terms")
        if self.start_index is not None and self.start_index < 0:
            raise ValidationError("start_index must not be negative", field="start_index", value=self.start_index)
        if self.max_results is not None and self.max_results < 1:
            raise ValidationError("max_results must be at least 1", field="max_results", value=self.max_results)


class QueryEngine:
    """Resolves terms to documents against an :class:`IndexStore`.

    Terms are lowercased before lookup, so matching is case-insensitive.
    A document matches when it has an entry for at least one of the terms.
    """

    def __init__(self, store: IndexStore, logger: LogSink | None = None) -> None:
        self._store = store
        self._sink = logger

    @property
    def log_sink(self) -> LogSink | None:
        return self._sink

    @log_sink.setter
    def log_sink(self, value: LogSink | None) -> None:
        self._sink = value

    def resolve_guids(
        self,
        terms: Iterable[str],
        start_index: int | None = None,
        max_results: int | None = None,
        filter: Expression | None = None,
    ) -> list[str]:
        """Distinct lowercase GUIDs of documents containing any of ``terms``.

        ``start_index`` and ``max_results`` page over the distinct GUIDs.
        ``filter`` is an extra predicate on index-entry columns, ANDed in
        front of the term match.
        """
        lowered = _normalize_terms(terms)
        where = Expression("term", Operator.IN, lowered)
        if filter is not None:
            where = where.prepend_and(filter)

        rows = self._store.select_index_entries(
            where,
            start_index=start_index,
            max_results=max_results,
            columns=("docs_guid",),
            distinct=True,
        )

        guids: list[str] = []
        seen: set[str] = set()
        for row in rows:
            guid = (row["docs_guid"] or "").lower()
            if guid and guid not in seen:
                seen.add(guid)
                guids.append(guid)

        logger.debug("guids_resolved", terms=lowered, matches=len(guids))
        return guids

    def search(
        self,
        terms: Iterable[str],
        start_index: int | None = None,
        max_results: int | None = None,
        filter: Expression | None = None,
        document_filter: Expression | None = None,
    ) -> list[Document]:
        """Documents containing any of ``terms``.

        Pagination applies to the GUID resolution step; ``max_results`` also
        caps the number of documents returned. ``document_filter`` narrows
        the result on ``docs`` columns.
        """
        lowered = _normalize_terms(terms)
        guids = self.resolve_guids(lowered, start_index, max_results, filter)
        if not guids:
            self._log("info", "search_no_matches", f"search: no document GUIDs found for terms {lowered}",
                      terms=lowered)
            return []

        documents = self._store.select_documents_by_guids(guids, document_filter, max_results=max_results)
        logger.debug("search_completed", terms=lowered, documents=len(documents))
        return documents

    def execute(self, query: SearchQuery) -> list[Document]:
        return self.search(
            query.terms,
            start_index=query.start_index,
            max_results=query.max_results,
            filter=query.filter,
            document_filter=query.document_filter,
        )

    def get_by_guid(self, guid: str) -> Document | None:
        if not guid:
            raise ValidationError("GUID is required", field="guid")
        found = self._store.select_documents(Expression("guid", Operator.EQUALS, guid), max_results=1)
        return found[0] if found else None

    def get_by_handle(self, handle: str) -> Document | None:
        """Document registered under ``handle``; the first one if several match."""
        if not handle:
            raise ValidationError("Handle is required", field="handle")
        found = self._store.select_documents(Expression("handle", Operator.EQUALS, handle))
        if not found:
            return None
        if len(found) > 1:
            self._log("warning", "duplicate_handle",
                      f"get_by_handle: {len(found)} documents share handle {handle}; returning the first",
                      handle=handle, matches=len(found))
        return found[0]

    def exists(self, guid: str | None = None, handle: str | None = None) -> bool:
        """Whether a document with ``guid`` (or, failing that, ``handle``) is indexed."""
        if guid:
            where = Expression("guid", Operator.EQUALS, guid)
        elif handle:
            where = Expression("handle", Operator.EQUALS, handle)
        else:
            raise ValidationError("A GUID or handle is required")
        return self._store.count_documents(where) > 0

    def is_indexed(self, handle: str) -> bool:
        if not handle:
            raise ValidationError("Handle is required", field="handle")
        return self.exists(handle=handle)

    def term_reference_count(self, term: str) -> int:
        """Total occurrences of ``term`` across all indexed documents."""
        if not term:
            raise ValidationError("Term is required", field="term")
        return self._store.sum_ref_counts(term)

    def _log(self, level: str, event: str, message: str, **kwargs) -> None:
        getattr(logger, level)(event, **kwargs)
        if self._sink is not None:
            self._sink(f"[IndexEngine] {message}")


def _normalize_terms(terms: Iterable[str] | None) -> list[str]:
    if terms is None or isinstance(terms, str):
        raise ValidationError("Terms must be a collection of strings", field="terms", value=terms)
    lowered: list[str] = []
    for term in terms:
        if term:
            value = term.lower()
            if value not in lowered:
                lowered.append(value)
    if not lowered:
        raise ValidationError("At least one search term is required", field="terms")
    return lowered


__all__ = [
    "QueryEngine",
    "SearchQuery",
]
