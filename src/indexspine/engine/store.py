"""
Index store: façade over the database adapter.

Manifesto:
    The engine needs a handful of primitives from its persistence layer:
    create-table-if-absent, insert, select-by-predicate, delete-by-predicate
    and a raw-statement escape hatch.  ``IndexStore`` exposes exactly those,
    expressed in terms of documents and index entries, and owns every
    persisted row.

Architecture:
    ::

        IndexStore(adapter)
          ├── ensure_schema()                       ─ docs + index_entries
          ├── upsert_document(doc)
          ├── delete_documents_by(guid=, handle=)   ─ entries first, then rows
          ├── insert_index_entries(entries)         ─ one executemany per batch
          ├── delete_index_entries_by_document(guid)
          ├── select_documents(where, start, max)
          ├── select_documents_by_guids(guids, where, max) ─ chunked IN lists
          ├── select_index_entries(where, start, max, columns, distinct)
          ├── sum_ref_counts(term) / count_documents(where)
          ├── raw_query(sql) / literal(value)       ─ textual statements
          └── backup(destination)

Guardrails:
    ❌ DON'T: Concatenate caller values into SQL
    ✅ DO: Use Expression filters; they compile to bound parameters

    ❌ DON'T: Build raw statements from unsanitized values
    ✅ DO: Quote every value with ``literal()`` when a raw statement is unavoidable

Tags:
    storage, sqlite, inverted-index, repository, index-spine
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from indexspine.core.adapters import DatabaseAdapter
from indexspine.core.errors import StoreError, ValidationError
from indexspine.core.logging import get_logger
from indexspine.engine.filters import Expression, Operator, combine
from indexspine.engine.models import Document, IndexEntry

logger = get_logger(__name__)

DOCS_TABLE = "docs"
ENTRIES_TABLE = "index_entries"

DOCUMENT_COLUMNS = ("id", "title", "description", "handle", "source", "added_by", "guid", "added")
ENTRY_COLUMNS = ("id", "term", "refcount", "docs_guid")


def sanitize_string(dirty: str | None) -> str | None:
    """Make a value safe to embed inside a single-quoted SQL literal.

    Strips NUL, control (< 32) and non-printable-ASCII (> 126) characters,
    doubles single and double quotes, and removes the comment delimiters
    ``/*``, ``*/`` and ``--``.

    Every statement the engine issues itself is parameterized; this routine
    only protects statements assembled as text through :meth:`IndexStore.raw_query`,
    where no driver-level binding is available.

    >>> sanitize_string("O'Brien -- drop\\x00")
    "O''Brien  drop"
    """
    if not dirty:
        return None
    clean = "".join(ch for ch in dirty if 32 <= ord(ch) <= 126)
    clean = clean.replace("'", "''")
    clean = clean.replace('"', '""')
    clean = clean.replace("/*", "")
    clean = clean.replace("*/", "")
    clean = clean.replace("--", "")
    return clean


class IndexStore:
    """Document and index-entry persistence over a :class:`DatabaseAdapter`."""

    def __init__(self, adapter: DatabaseAdapter) -> None:
        self._adapter = adapter
        self._dialect = adapter.dialect

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    # -- Schema ------------------------------------------------------------

    def ensure_schema(self) -> None:
        """Create tables and lookup indexes if they do not exist."""
        pk = self._dialect.auto_increment()
        statements = [
            f"CREATE TABLE IF NOT EXISTS {DOCS_TABLE} ("
            f"  id            {pk},"
            "  title         VARCHAR(256)   COLLATE NOCASE,"
            "  description   VARCHAR(1024)  COLLATE NOCASE,"
            "  handle        VARCHAR(256)   COLLATE NOCASE,"
            "  source        VARCHAR(32)    COLLATE NOCASE,"
            "  added_by      VARCHAR(32)    COLLATE NOCASE,"
            "  guid          VARCHAR(64)    COLLATE NOCASE,"
            "  added         VARCHAR(32)"
            ")",
            f"CREATE TABLE IF NOT EXISTS {ENTRIES_TABLE} ("
            f"  id            {pk},"
            "  term          VARCHAR(256)   COLLATE NOCASE,"
            "  refcount      INTEGER,"
            "  docs_guid     VARCHAR(64)    COLLATE NOCASE"
            ")",
            f"CREATE INDEX IF NOT EXISTS idx_docs_guid ON {DOCS_TABLE} (guid)",
            f"CREATE INDEX IF NOT EXISTS idx_docs_handle ON {DOCS_TABLE} (handle)",
            f"CREATE INDEX IF NOT EXISTS idx_entries_term ON {ENTRIES_TABLE} (term)",
            f"CREATE INDEX IF NOT EXISTS idx_entries_docs_guid ON {ENTRIES_TABLE} (docs_guid)",
        ]
        with self._adapter.transaction() as conn:
            for sql in statements:
                conn.execute(sql)
        logger.debug("schema_ensured", tables=[DOCS_TABLE, ENTRIES_TABLE])

    # -- Documents ---------------------------------------------------------

    def upsert_document(self, document: Document) -> None:
        """Replace any row for ``document.guid`` with ``document``."""
        row = document.to_row()
        columns = list(row.keys())
        insert_sql = (
            f"INSERT INTO {DOCS_TABLE} ({', '.join(columns)}) "
            f"VALUES ({self._dialect.placeholders(len(columns))})"
        )
        with self._adapter.transaction() as conn:
            conn.execute(f"DELETE FROM {DOCS_TABLE} WHERE guid = ?", (document.guid,))
            conn.execute(insert_sql, tuple(row.values()))

    def delete_documents_by(self, *, guid: str | None = None, handle: str | None = None) -> int:
        """Delete documents matching ``guid`` or ``handle`` along with their entries.

        Returns the number of document rows removed.
        """
        if not guid and not handle:
            raise ValidationError("A GUID or handle is required to delete documents")

        where = Expression("guid", Operator.EQUALS, guid) if guid else Expression("handle", Operator.EQUALS, handle)
        clause, params = where.compile(self._dialect)
        with self._adapter.transaction() as conn:
            conn.execute(
                f"DELETE FROM {ENTRIES_TABLE} WHERE docs_guid IN (SELECT guid FROM {DOCS_TABLE} WHERE {clause})",
                params,
            )
            removed = conn.execute(f"DELETE FROM {DOCS_TABLE} WHERE {clause}", params).rowcount
        logger.debug("documents_deleted", guid=guid, handle=handle, removed=removed)
        return removed

    def select_documents(
        self,
        where: Expression | None = None,
        start_index: int | None = None,
        max_results: int | None = None,
    ) -> list[Document]:
        rows = self._select(DOCS_TABLE, where, start_index=start_index, max_results=max_results)
        return [Document.from_row(row) for row in rows]

    def select_documents_by_guids(
        self,
        guids: Iterable[str],
        where: Expression | None = None,
        max_results: int | None = None,
    ) -> list[Document]:
        """Documents whose GUID is in ``guids``, narrowed by ``where``.

        The GUID list is split across statements so none binds more values
        than the connection allows. Results are ordered by row id and capped
        at ``max_results``.
        """
        guids = list(guids)
        reserved = len(where.compile(self._dialect)[1]) if where is not None else 0
        chunk_size = self._adapter.max_variables() - reserved
        if chunk_size < 1:
            raise ValidationError("Document filter binds too many values", field="document_filter")

        documents: list[Document] = []
        for start in range(0, len(guids), chunk_size):
            chunk = Expression("guid", Operator.IN, guids[start:start + chunk_size])
            documents.extend(self.select_documents(combine(chunk, where)))
        documents.sort(key=lambda doc: doc.document_id or 0)
        return documents[:max_results] if max_results is not None else documents

    def count_documents(self, where: Expression | None = None) -> int:
        sql = f"SELECT COUNT(*) AS num_docs FROM {DOCS_TABLE}"
        params: tuple = ()
        if where is not None:
            clause, params = where.compile(self._dialect)
            sql += f" WHERE {clause}"
        row = self._adapter.query_one(sql, params)
        return int(row["num_docs"]) if row else 0

    # -- Index entries -----------------------------------------------------

    def insert_index_entries(self, entries: Iterable[IndexEntry]) -> int:
        """Write one batch of entries: one ``executemany`` in one transaction."""
        return self._adapter.insert_many(ENTRIES_TABLE, [entry.to_row() for entry in entries])

    def delete_index_entries_by_document(self, guid: str) -> int:
        if not guid:
            raise ValidationError("A GUID is required to delete index entries", field="guid")
        cursor = self._adapter.execute(f"DELETE FROM {ENTRIES_TABLE} WHERE docs_guid = ?", (guid,))
        return cursor.rowcount

    def select_index_entries(
        self,
        where: Expression | None = None,
        start_index: int | None = None,
        max_results: int | None = None,
        columns: Iterable[str] | None = None,
        distinct: bool = False,
    ) -> list[dict[str, Any]]:
        return self._select(
            ENTRIES_TABLE,
            where,
            start_index=start_index,
            max_results=max_results,
            columns=columns,
            distinct=distinct,
        )

    def sum_ref_counts(self, term: str) -> int:
        row = self._adapter.query_one(
            f"SELECT COALESCE(SUM(refcount), 0) AS num_refs FROM {ENTRIES_TABLE} WHERE term = ?",
            (term.lower(),),
        )
        return int(row["num_refs"]) if row else 0

    # -- Raw statements ----------------------------------------------------

    def literal(self, value: Any) -> str:
        """Render ``value`` as a SQL literal for a raw statement."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        return f"'{sanitize_string(str(value)) or ''}'"

    def raw_query(self, sql: str) -> list[dict[str, Any]]:
        """Run a textual statement; returns rows for queries, ``[]`` otherwise."""
        with self._adapter.transaction() as conn:
            cursor = conn.execute(sql)
            if cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]

    def backup(self, destination: str) -> None:
        if not destination:
            raise ValidationError("Backup destination is required", field="destination")
        self._adapter.backup(destination)
        logger.info("index_backed_up", destination=destination)

    # -- Internals ---------------------------------------------------------

    def _select(
        self,
        table: str,
        where: Expression | None,
        *,
        start_index: int | None = None,
        max_results: int | None = None,
        columns: Iterable[str] | None = None,
        distinct: bool = False,
    ) -> list[dict[str, Any]]:
        allowed = DOCUMENT_COLUMNS if table == DOCS_TABLE else ENTRY_COLUMNS
        selected = list(columns) if columns else ["*"]
        for column in selected:
            if column != "*" and column not in allowed:
                raise ValidationError(f"Unknown column for {table}", field="columns", value=column)
        if where is not None:
            unknown = where.columns() - set(allowed)
            if unknown:
                raise ValidationError(
                    f"Filter references unknown columns for {table}",
                    field="filter",
                    value=sorted(unknown),
                )
        if start_index is not None and start_index < 0:
            raise ValidationError("start_index must not be negative", value=start_index)
        if max_results is not None and max_results < 1:
            raise ValidationError("max_results must be at least 1", value=max_results)

        sql = f"SELECT {'DISTINCT ' if distinct else ''}{', '.join(selected)} FROM {table}"
        params: tuple = ()
        if where is not None:
            clause, params = where.compile(self._dialect)
            sql += f" WHERE {clause}"
        # stable order so pagination windows do not overlap
        sql += f" ORDER BY {selected[0]}" if distinct and selected[0] != "*" else " ORDER BY id"
        pagination = self._dialect.limit_offset(max_results, start_index)
        if pagination:
            sql += f" {pagination}"

        try:
            return self._adapter.query(sql, params)
        except StoreError as e:
            raise e.with_context(table=table, operation="select")


__all__ = [
    "DOCS_TABLE",
    "ENTRIES_TABLE",
    "IndexStore",
    "sanitize_string",
]
