"""Engine settings for index-spine.

``IndexSettings`` gathers every tunable the engine recognizes (tokenizer
rules, ingestion batching, worker pool size, database location, logging)
into one validated, environment-driven object.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not mid-ingestion
    - **Environment-driven:** Reads ``INDEXSPINE_*`` env vars and ``.env``
    - **Sensible defaults:** In-memory database, 3-char terms, batches of 1000

Examples:
    >>> from indexspine.core.settings import IndexSettings
    >>> settings = IndexSettings(batch_size=250)
    >>> settings.term_minimum_length
    3

Tags:
    settings, configuration, pydantic, environment, index-spine
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexspine.engine.tokenizer import DEFAULT_DELIMITERS, DEFAULT_IGNORE_WORDS


class IndexSettings(BaseSettings):
    """Settings recognized by :class:`~indexspine.engine.engine.IndexEngine`.

    Fields
    ──────
    database_path           : SQLite file, or ``:memory:``
    term_minimum_length     : Shortest raw fragment considered a term
    term_delimiters         : Characters that split content into terms
    ignore_words            : Stop words, compared case-insensitively
    batch_size              : Index entries per executemany batch
    max_indexing_threads    : Worker pool size for concurrent ingestion
    serialize_same_identity : Serialize supersede/write for a shared GUID or handle
    log_level               : Structlog log level for the CLI
    json_logs               : Force JSON (True) or console (False) CLI logs; None picks by TTY
    """

    model_config = SettingsConfigDict(
        env_prefix="INDEXSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_path: str = ":memory:"

    # ── Tokenizer ────────────────────────────────────────────────
    term_minimum_length: int = Field(default=3, ge=1)
    term_delimiters: str = DEFAULT_DELIMITERS
    ignore_words: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_WORDS))

    # ── Ingestion ────────────────────────────────────────────────
    batch_size: int = Field(default=1000, ge=1)
    max_indexing_threads: int = Field(default=32, ge=1)
    serialize_same_identity: bool = True

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool | None = None

    @field_validator("term_delimiters")
    @classmethod
    def _delimiters_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("term_delimiters must contain at least one character")
        return value

    @field_validator("ignore_words", mode="before")
    @classmethod
    def _ignore_words_default(cls, value):
        if value is None:
            return []
        return value


__all__ = [
    "IndexSettings",
]
