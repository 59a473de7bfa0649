"""
index-spine - lightweight document indexing and term search.

Callers submit documents (title, handle, metadata and a byte payload); the
engine tokenizes the payload into normalized terms, keeps an inverted
term → document index in SQLite and answers "which documents contain these
terms" queries.
"""

__version__ = "0.1.0"

from indexspine.engine import Document, Expression, IndexEngine, Operator, SearchQuery  # noqa: E402

__all__ = [
    "Document",
    "Expression",
    "IndexEngine",
    "Operator",
    "SearchQuery",
    "__version__",
]
