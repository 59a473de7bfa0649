"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from indexspine.core.errors import DatabaseConnectionError, QueryError, StoreError
from indexspine.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module with a single connection shared across
    ingestion workers (``check_same_thread=False``); every statement runs
    under the adapter lock. Driver errors surface as :class:`QueryError`.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        journal_mode: str = "TRUNCATE",
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            connect_timeout=timeout,
            journal_mode=journal_mode,
            options=kwargs,
        )
        super().__init__(config)
        self._conn: sqlite3.Connection | None = None
        self._closed = False

    @property
    def path(self) -> str:
        return self._config.to_connection_string()

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.to_connection_string()
        uri = path.startswith("file:") or "?" in path

        with self._lock:
            if self._conn is not None:
                return
            self._closed = False
            try:
                self._conn = sqlite3.connect(
                    path,
                    timeout=self._config.connect_timeout,
                    check_same_thread=False,
                    uri=uri,
                )
                self._conn.row_factory = sqlite3.Row

                if self._config.journal_mode and path != ":memory:":
                    self._conn.execute(f"PRAGMA journal_mode = {self._config.journal_mode}")

                if self._config.readonly:
                    self._conn.execute("PRAGMA query_only = ON")

                self._connected = True

            except sqlite3.Error as e:
                self._conn = None
                raise DatabaseConnectionError(
                    f"Failed to connect to SQLite: {e}",
                    cause=e,
                ) from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                self._connected = False
                self._closed = True

    def get_connection(self) -> Connection:
        """Get the SQLite connection, opening it on first use.

        Raises:
            DatabaseConnectionError: The adapter was disconnected and has not
                been reconnected explicitly.
        """
        with self._lock:
            if self._conn is None:
                if self._closed:
                    raise DatabaseConnectionError(
                        f"SQLite connection to {self.path} is closed",
                        retryable=False,
                    )
                self.connect()
            return self._conn

    def max_variables(self) -> int:
        return self.get_connection().getlimit(sqlite3.SQLITE_LIMIT_VARIABLE_NUMBER)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Transaction context manager; holds the adapter lock throughout."""
        with self._lock:
            conn = self.get_connection()
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise QueryError(f"SQLite statement failed: {e}", cause=e) from e
            except Exception:
                conn.rollback()
                raise

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute query and return results as dicts."""
        with self._lock:
            conn = self.get_connection()
            try:
                cursor = conn.execute(sql, params)
                return [dict(row) for row in cursor.fetchall()]
            except sqlite3.Error as e:
                raise QueryError(f"SQLite query failed: {e}", cause=e) from e

    def backup(self, destination: str) -> None:
        """Online backup of the live database into ``destination``."""
        with self._lock:
            source = self.get_connection()
            try:
                target = sqlite3.connect(destination)
            except sqlite3.Error as e:
                raise StoreError(f"Cannot open backup destination: {e}", cause=e) from e
            try:
                source.backup(target)
            except sqlite3.Error as e:
                raise StoreError(f"SQLite backup failed: {e}", cause=e) from e
            finally:
                target.close()


__all__ = [
    "SQLiteAdapter",
]
