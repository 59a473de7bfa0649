"""
SQL dialect abstraction for index-spine.

The index store builds its statements from dialect fragments (placeholders,
auto-increment DDL, pagination) so that the store logic never hard-codes
vendor syntax.  SQLite is the only shipped dialect.

Examples:
    >>> dialect = SQLiteDialect()
    >>> dialect.placeholders(3)
    '?, ?, ?'
    >>> dialect.limit_offset(10, 20)
    'LIMIT 10 OFFSET 20'

Tags:
    dialect, sql, abstraction, portability, database, index-spine
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** (string) that is valid for
    the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def auto_increment(self) -> str:
        """DDL fragment for auto-incrementing primary key type."""
        ...

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        """Pagination clause, or an empty string when neither is set."""
        ...


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``COLLATE NOCASE`` text columns."""

    @property
    def name(self) -> str:
        return "sqlite"

    # -- Placeholders ------------------------------------------------------

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    # -- DDL ---------------------------------------------------------------

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    # -- Pagination --------------------------------------------------------

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and not offset:
            return ""
        # SQLite requires a LIMIT before OFFSET; -1 means unbounded
        clause = f"LIMIT {int(limit) if limit is not None else -1}"
        if offset:
            clause += f" OFFSET {int(offset)}"
        return clause


_DIALECTS: dict[str, type] = {
    "sqlite": SQLiteDialect,
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by database type name."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        from indexspine.core.errors import InvalidConfigError

        raise InvalidConfigError("dialect", name, f"Unsupported SQL dialect: {name}") from None


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "get_dialect",
]
