"""
Data model for the index: documents and index entries.

Manifesto:
    The engine owns no document storage. A ``Document`` carries the
    caller's metadata plus a transient byte payload that is tokenized
    and then discarded; only the metadata row and its ``IndexEntry``
    rows are ever persisted.

Architecture:
    ::

        Document ──1:N──▶ IndexEntry
          guid  ◀──────── doc_guid
          handle (dedup key, unique by replacement)
          data   (never persisted)

Examples:
    >>> doc = Document.create(title="Fox facts", handle="https://example.com/fox",
    ...                       data=b"The quick fox")
    >>> len(doc.guid)
    36
    >>> IndexEntry(term="fox", ref_count=2, doc_guid=doc.guid).ref_count
    2

Tags:
    document, index-entry, data-model, index-spine
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from indexspine.core.errors import ValidationError


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


def new_guid() -> str:
    """Globally unique document identifier."""
    return str(uuid.uuid4())


@dataclass
class Document:
    """
    A document submitted to, or read back from, the index.

    Fields may be empty while the caller is still assembling the document;
    ``title`` and ``handle`` are enforced when it is submitted.

    Attributes:
        guid: Globally unique identifier; assigned on submission if empty
        title: Non-empty title, supplied by the caller
        description: Free-form description
        handle: URL or other locator for the real content; the dedup key
        source: Caller-defined origin (web, upload, ...)
        added_by: Who added the document
        added: UTC timestamp stamped on submission
        data: Payload bytes; consumed by ingestion, never stored
        document_id: Store row id, set when read back
    """

    guid: str = ""
    title: str = ""
    description: str | None = None
    handle: str = ""
    source: str | None = None
    added_by: str | None = None
    added: datetime | None = None
    data: bytes = field(default=b"", repr=False, compare=False)
    document_id: int | None = field(default=None, compare=False)

    @classmethod
    def create(
        cls,
        *,
        title: str,
        handle: str,
        data: bytes | str = b"",
        guid: str | None = None,
        description: str | None = None,
        source: str | None = None,
        added_by: str | None = None,
    ) -> Document:
        """Build a validated document, assigning a GUID and timestamp."""
        if not title:
            raise ValidationError("Document title is required", field="title")
        if not handle:
            raise ValidationError("Document handle is required", field="handle")
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(
            guid=guid or new_guid(),
            title=title,
            description=description,
            handle=handle,
            source=source,
            added_by=added_by,
            added=utcnow(),
            data=data or b"",
        )

    def validate(self) -> None:
        """Raise :class:`ValidationError` unless title and handle are set."""
        if not self.title:
            raise ValidationError("Document title is required", field="title").with_context(
                guid=self.guid or None, handle=self.handle or None
            )
        if not self.handle:
            raise ValidationError("Document handle is required", field="handle").with_context(
                guid=self.guid or None
            )

    def to_row(self) -> dict[str, Any]:
        """Column mapping for the ``docs`` table."""
        return {
            "title": self.title,
            "description": self.description,
            "handle": self.handle,
            "source": self.source,
            "added_by": self.added_by,
            "guid": self.guid,
            "added": self.added.isoformat() if self.added else None,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Document:
        added = row.get("added")
        return cls(
            guid=row.get("guid") or "",
            title=row.get("title") or "",
            description=row.get("description"),
            handle=row.get("handle") or "",
            source=row.get("source"),
            added_by=row.get("added_by"),
            added=datetime.fromisoformat(added) if added else None,
            document_id=row.get("id"),
        )

    def describe(self) -> str:
        """Human-readable multi-line rendering."""
        return "\n".join(
            [
                "---",
                f"  ID          : {self.document_id}",
                f"  Title       : {self.title}",
                f"  Description : {self.description or ''}",
                f"  Source      : {self.source or ''}",
                f"  Handle      : {self.handle}",
                f"  Added By    : {self.added_by or ''}",
                f"  Added       : {self.added.isoformat() if self.added else ''}",
                f"  GUID        : {self.guid}",
            ]
        )


@dataclass(frozen=True)
class IndexEntry:
    """One (term, document) association with its occurrence count."""

    term: str
    ref_count: int
    doc_guid: str
    entry_id: int | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.term:
            raise ValidationError("Index entry term is required", field="term")
        if not self.doc_guid:
            raise ValidationError("Index entry document GUID is required", field="doc_guid")
        if self.ref_count < 1:
            raise ValidationError(
                "Index entry reference count must be at least 1",
                field="ref_count",
                value=self.ref_count,
            )

    def to_row(self) -> dict[str, Any]:
        return {"term": self.term, "refcount": self.ref_count, "docs_guid": self.doc_guid}

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> IndexEntry:
        return cls(
            term=row["term"],
            ref_count=int(row["refcount"]),
            doc_guid=row["docs_guid"],
            entry_id=row.get("id"),
        )


__all__ = [
    "Document",
    "IndexEntry",
    "new_guid",
    "utcnow",
]
