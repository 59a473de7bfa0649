"""
index-spine core primitives.

Errors, structured logging, settings, SQL dialects, protocols and the
database adapters shared by the indexing engine.

Modules
-------
errors          Typed error hierarchy (ValidationError, StoreError, ...)
logging         structlog configuration and context helpers
settings        pydantic-settings ``IndexSettings``
dialect         SQL dialect fragments
protocols       Connection and LogSink protocols
adapters        Database adapters (SQLite)
"""

from indexspine.core.errors import (
    CancellationError,
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    IndexSpineError,
    InvalidConfigError,
    NotFoundError,
    QueryError,
    StoreError,
    ValidationError,
)
from indexspine.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "CancellationError",
    "ConfigError",
    "DatabaseConnectionError",
    "ErrorCategory",
    "ErrorContext",
    "IndexSpineError",
    "InvalidConfigError",
    "NotFoundError",
    "QueryError",
    "StoreError",
    "ValidationError",
    "LogContext",
    "configure_logging",
    "get_logger",
]
