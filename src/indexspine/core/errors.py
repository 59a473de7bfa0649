"""
Structured error types for index-spine.

Every failure the engine can surface is an ``IndexSpineError`` subclass that
carries a category, retry semantics, structured context (document GUID,
handle, table, term) and an optional chained cause.

Manifesto:
    - **Typed Error Hierarchy:** Validation, store, config and cancellation
      failures are distinct types, never bare ``Exception``
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry the document GUID for traceability
    - **Error Chaining:** Preserve the ``sqlite3`` exception as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      IndexSpineError                             │
        │  (category, retryable, retry_after, context, cause)             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError   ConfigError       NotFoundError              │
        │  (VALIDATION)      (CONFIG)          (NOT_FOUND)                │
        │                                                                  │
        │  StoreError        CancellationError                            │
        │  (DATABASE)        (CANCELLED)                                  │
        │       │                                                          │
        │  QueryError                                                      │
        │  DatabaseConnectionError (retryable)                            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ValidationError("title is required", field="title")
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> error.retryable
    False

    >>> error = StoreError("insert failed").with_context(guid="abc-123")
    >>> error.context.guid
    'abc-123'

Guardrails:
    ❌ DON'T: Raise NotFoundError from "get" operations - absence is ``None``
    ✅ DO: Reserve NotFoundError for callers that require a row to exist

    ❌ DON'T: Swallow the original ``sqlite3.Error``
    ✅ DO: Pass it as ``cause=`` for error chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    index-spine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DATABASE: Store connection, query or transaction failures
        VALIDATION: Missing required fields, empty term lists
        CONFIG: Invalid tokenizer/ingestion configuration
        NOT_FOUND: Lookup misses where a row was required
        CANCELLED: Ingestion aborted by the cancellation signal
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    NOT_FOUND = "NOT_FOUND"
    CANCELLED = "CANCELLED"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the identifiers that matter when tracing an
    ingestion or query; anything else lands in ``metadata``.

    Examples:
        >>> ctx = ErrorContext(guid="abc-123", handle="https://example.com/a")
        >>> ctx.to_dict()
        {'guid': 'abc-123', 'handle': 'https://example.com/a'}
    """

    guid: str | None = None
    handle: str | None = None
    table: str | None = None
    term: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["guid", "handle", "table", "term", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class IndexSpineError(Exception):
    """
    Base exception for all index-spine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass a message and, where relevant, a cause.

    Examples:
        >>> error = IndexSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise OSError("disk full")
        ... except OSError as e:
        ...     error = IndexSpineError("Write failed", cause=e)
        >>> error.cause
        OSError('disk full')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> IndexSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreError("Failed").with_context(guid=doc.guid, table="docs")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        if self.context:
            context_dict = self.context.to_dict()
            if context_dict:
                result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(IndexSpineError):
    """
    Input validation error (empty title/handle, empty term list).

    Never retryable - input must be fixed. Raised synchronously at the
    public API boundary, before any background work is scheduled.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(IndexSpineError):
    """
    Configuration error (empty delimiter set, non-positive batch size).

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class NotFoundError(IndexSpineError):
    """A document required by the caller is not in the index."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(IndexSpineError):
    """Persistence collaborator failure."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(StoreError):
    """SQL statement failed."""

    pass


class DatabaseConnectionError(StoreError):
    """Could not open or reach the database."""

    default_retryable = True


# =============================================================================
# CANCELLATION
# =============================================================================


class CancellationError(IndexSpineError):
    """Ingestion aborted because cancellation was requested."""

    default_category = ErrorCategory.CANCELLED
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, IndexSpineError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, IndexSpineError):
        return error.category
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "IndexSpineError",
    "ValidationError",
    "ConfigError",
    "InvalidConfigError",
    "NotFoundError",
    "StoreError",
    "QueryError",
    "DatabaseConnectionError",
    "CancellationError",
    "is_retryable",
    "categorize_error",
]
