"""
Canonical protocol definitions for index-spine.

Architecture:
    ::

        protocols.py
        ├── Connection  : sync DB protocol (sqlite3.Connection satisfies it)
        └── LogSink     : single-argument diagnostic sink supplied by callers

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts: implementations go in adapters

Tags:
    protocol, connection, logging, index-spine, contracts
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Examples:
        >>> def store_entries(conn: Connection, rows: list[tuple]):
        ...     conn.executemany(
        ...         "INSERT INTO index_entries (term, refcount, docs_guid) VALUES (?, ?, ?)",
        ...         rows,
        ...     )
        ...     conn.commit()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


@runtime_checkable
class LogSink(Protocol):
    """Caller-supplied diagnostic sink.

    Receives human-readable progress strings such as
    ``"[IndexEngine] [<guid>] finished; 12/12 terms [3.1ms total, 0.26ms/term]"``.
    """

    def __call__(self, message: str) -> None: ...


__all__ = [
    "Connection",
    "LogSink",
]
