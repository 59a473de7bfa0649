"""Database adapters -- the persistence collaborator behind the index store.

Architecture::

    DatabaseAdapter (base.py)        Abstract base with connect/execute/query
        |-- SQLiteAdapter            stdlib sqlite3

    DatabaseConfig (types.py)        Connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ ``conn.execute("SELECT * FROM docs WHERE guid='" + guid + "'")``
    ✅ ``conn.execute("SELECT * FROM docs WHERE guid = ?", (guid,))``

Tags:
    index-spine, database, adapters, sqlite
"""

from .base import DatabaseAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "SQLiteAdapter",
]
