"""Database adapter base class.

Manifesto:
    The index store needs exactly five primitives from its persistence
    collaborator: create-table-if-absent, insert, select, delete and a raw
    statement escape hatch.  ``DatabaseAdapter`` defines that contract so the
    store never depends on a specific driver.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``get_connection()``,
      ``transaction()`` and ``backup()``
    - ``execute()`` / ``executemany()`` / ``query()`` helpers serialized by a
      re-entrant lock, so one connection can be shared by ingestion workers
    - Context-manager protocol for connection lifecycle

Tags:
    index-spine, database, abstract-base, adapter-pattern
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from indexspine.core.dialect import Dialect, get_dialect
from indexspine.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)
        self._lock = threading.RLock()

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @property
    def lock(self) -> threading.RLock:
        """Lock serializing access to the underlying connection."""
        return self._lock

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def get_connection(self) -> Connection:
        """Get the underlying connection."""
        ...

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Context manager for a transaction."""
        ...

    @abstractmethod
    def backup(self, destination: str) -> None:
        """Copy the live database to ``destination``."""
        ...

    def max_variables(self) -> int:
        """Most bound parameters one statement may carry."""
        return 999

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a single statement in its own transaction."""
        with self.transaction() as conn:
            return conn.execute(sql, params)

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL for multiple parameter sets in one transaction."""
        with self.transaction() as conn:
            return conn.executemany(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute query and return results as dicts."""
        with self._lock:
            conn = self.get_connection()
            cursor = conn.execute(sql, params)
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute query and return single result."""
        results = self.query(sql, params)
        return results[0] if results else None

    def insert_many(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Insert multiple rows in one transaction."""
        if not rows:
            return 0

        columns = list(rows[0].keys())
        placeholders = self._dialect.placeholders(len(columns))
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"

        params = [tuple(row[col] for col in columns) for row in rows]
        self.executemany(sql, params)
        return len(rows)

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "DatabaseAdapter",
]
