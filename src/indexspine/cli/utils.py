"""
CLI utility helpers: output formatting and engine management.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from indexspine.core.errors import IndexSpineError
from indexspine.core.settings import IndexSettings
from indexspine.engine import Document, IndexEngine

console = Console()
err_console = Console(stderr=True)


# ── Engine helper ────────────────────────────────────────────────────────


def default_database() -> str:
    """``~/.index-spine/index.db``, created on demand."""
    path = Path.home() / ".index-spine" / "index.db"
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path)


@contextmanager
def open_engine(database: str | None = None) -> Iterator[IndexEngine]:
    """Open an engine for one command and close it afterwards.

    Tunables come from ``INDEXSPINE_*`` settings; ``database`` overrides the
    configured path, and an in-memory default is replaced by a file so the
    index survives between invocations.
    """
    settings = IndexSettings()
    path = database or settings.database_path
    if path == ":memory:":
        path = default_database()
    engine = IndexEngine.from_settings(settings.model_copy(update={"database_path": path}))
    try:
        yield engine
    finally:
        engine.close()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Render engine errors and exit non-zero."""
    try:
        yield
    except IndexSpineError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def document_dict(doc: Document) -> dict[str, Any]:
    return {
        "id": doc.document_id,
        "guid": doc.guid,
        "title": doc.title,
        "description": doc.description,
        "handle": doc.handle,
        "source": doc.source,
        "added_by": doc.added_by,
        "added": doc.added.isoformat() if doc.added else None,
    }


def output_documents(documents: list[Document], *, as_json: bool = False, title: str = "") -> None:
    if as_json:
        console.print_json(json.dumps([document_dict(d) for d in documents], default=str))
        return

    if not documents:
        console.print("[dim]No documents.[/dim]")
        return

    table = Table(title=title or None, show_lines=False)
    for column in ("guid", "title", "handle", "source", "added"):
        table.add_column(column, overflow="fold")
    for doc in documents:
        row = document_dict(doc)
        table.add_row(*(str(row[c] or "") for c in ("guid", "title", "handle", "source", "added")))
    console.print(table)
    console.print(f"[dim]{len(documents)} document(s)[/dim]")


def output_document(doc: Document, *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps(document_dict(doc), default=str))
        return
    console.print(doc.describe(), markup=False, highlight=False)
