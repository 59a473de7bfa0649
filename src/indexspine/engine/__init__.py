"""
index-spine engine -- tokenize, ingest, persist and search documents.

Modules
-------
tokenizer       Payload → normalized terms
terms           Term map accumulation (tags + tokens)
models          Document / IndexEntry
filters         Expression predicates compiled to parameterized SQL
store           IndexStore over a DatabaseAdapter
registry        In-flight GUID registry and per-identity locks
ingestion       IngestionCoordinator (thread pool, batching, cancellation)
query           QueryEngine / SearchQuery
engine          IndexEngine facade
"""

from indexspine.engine.engine import IndexEngine
from indexspine.engine.filters import Expression, Operator, combine
from indexspine.engine.ingestion import IngestionCoordinator, IngestResult
from indexspine.engine.models import Document, IndexEntry
from indexspine.engine.query import QueryEngine, SearchQuery
from indexspine.engine.registry import InFlightRegistry, KeyedLock
from indexspine.engine.store import IndexStore, sanitize_string
from indexspine.engine.terms import accumulate_terms
from indexspine.engine.tokenizer import DEFAULT_DELIMITERS, DEFAULT_IGNORE_WORDS, Tokenizer, alpha_only

__all__ = [
    "DEFAULT_DELIMITERS",
    "DEFAULT_IGNORE_WORDS",
    "Document",
    "Expression",
    "InFlightRegistry",
    "IndexEngine",
    "IndexEntry",
    "IndexStore",
    "IngestResult",
    "IngestionCoordinator",
    "KeyedLock",
    "Operator",
    "QueryEngine",
    "SearchQuery",
    "Tokenizer",
    "accumulate_terms",
    "alpha_only",
    "combine",
    "sanitize_string",
]
