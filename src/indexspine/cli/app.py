"""
Root Typer application for the index-spine CLI.

Each command opens the index for the duration of one invocation, runs a
single engine operation and closes it again.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from typer import Typer

from indexspine.cli.utils import console, handle_errors, open_engine, output_document, output_documents
from indexspine.core.errors import NotFoundError
from indexspine.core.logging import configure_logging
from indexspine.core.settings import IndexSettings
from indexspine.engine import Document, SearchQuery

app = Typer(
    name="index-spine",
    help="index-spine: document indexing and term search.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DB_OPTION = typer.Option(None, "--db", "-d", help="Index database path (default ~/.index-spine/index.db)")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("index-spine")
        except Exception:
            from indexspine import __version__ as v
        typer.echo(f"index-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level for engine diagnostics (default: INDEXSPINE_LOG_LEVEL)."
    ),
    json_logs: bool | None = typer.Option(
        None, "--json-logs/--console-logs", help="Diagnostics format (default: INDEXSPINE_JSON_LOGS)."
    ),
) -> None:
    """index-spine CLI: add, search and maintain a document index."""
    settings = IndexSettings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs if json_logs is None else json_logs,
        stream=sys.stderr,
        cache_loggers=False,
    )


# ── Ingestion ────────────────────────────────────────────────────────────


def _ingest(database: str | None, doc_kwargs: dict, tags: list[str] | None, as_json: bool) -> None:
    with handle_errors(), open_engine(database) as engine:
        doc = Document.create(**doc_kwargs)
        result = engine.add_and_wait(doc, tags)
        if as_json:
            console.print_json(data={
                "guid": result.guid,
                "handle": result.handle,
                "terms_total": result.terms_total,
                "terms_recorded": result.terms_recorded,
                "elapsed_ms": result.elapsed_ms,
                "cancelled": result.cancelled,
            })
            return
        console.print(f"[green]Indexed[/green] {result.guid}", highlight=False)
        console.print(
            f"{result.terms_recorded}/{result.terms_total} terms "
            f"[{result.elapsed_ms}ms total, {result.ms_per_term}ms/term]",
            markup=False,
            highlight=False,
        )


@app.command("add-file")
def add_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="File to index"),
    title: str | None = typer.Option(None, "--title", help="Title (default: file name)"),
    handle: str | None = typer.Option(None, "--handle", help="Handle (default: absolute file path)"),
    description: str | None = typer.Option(None, "--description"),
    source: str | None = typer.Option(None, "--source"),
    added_by: str | None = typer.Option(None, "--added-by"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    database: str | None = DB_OPTION,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Index the contents of a file."""
    _ingest(
        database,
        {
            "title": title or path.name,
            "handle": handle or str(path.resolve()),
            "description": description,
            "source": source,
            "added_by": added_by,
            "data": path.read_bytes(),
        },
        tags,
        json_out,
    )


@app.command("add-text")
def add_text(
    text: str = typer.Argument(..., help="Text to index"),
    title: str = typer.Option(..., "--title"),
    handle: str = typer.Option(..., "--handle"),
    description: str | None = typer.Option(None, "--description"),
    source: str | None = typer.Option(None, "--source"),
    added_by: str | None = typer.Option(None, "--added-by"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    database: str | None = DB_OPTION,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Index a piece of text given on the command line."""
    _ingest(
        database,
        {
            "title": title,
            "handle": handle,
            "description": description,
            "source": source,
            "added_by": added_by,
            "data": text,
        },
        tags,
        json_out,
    )


# ── Queries ──────────────────────────────────────────────────────────────


@app.command()
def search(
    terms: list[str] = typer.Argument(..., help="Terms; a document matches any of them"),
    start: int | None = typer.Option(None, "--start", min=0, help="Skip this many matching documents"),
    max_results: int | None = typer.Option(None, "--max", min=1, help="Return at most this many documents"),
    database: str | None = DB_OPTION,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Find documents containing any of the given terms."""
    with handle_errors(), open_engine(database) as engine:
        query = SearchQuery(terms=tuple(terms), start_index=start, max_results=max_results)
        output_documents(engine.search(query), as_json=json_out, title="Search Results")


@app.command()
def get(
    guid: str = typer.Argument(..., help="Document GUID"),
    database: str | None = DB_OPTION,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show one document by GUID."""
    with handle_errors(), open_engine(database) as engine:
        doc = engine.get_by_guid(guid)
        if doc is None:
            raise NotFoundError(f"No document with GUID {guid}").with_context(guid=guid)
        output_document(doc, as_json=json_out)


@app.command()
def exists(
    handle: str = typer.Argument(..., help="Document handle"),
    database: str | None = DB_OPTION,
) -> None:
    """Report whether a handle is indexed (exit code 1 when it is not)."""
    with handle_errors(), open_engine(database) as engine:
        indexed = engine.is_indexed(handle)
    console.print("true" if indexed else "false")
    if not indexed:
        raise typer.Exit(code=1)


@app.command()
def count(
    term: str = typer.Argument(..., help="Term to count"),
    database: str | None = DB_OPTION,
) -> None:
    """Total references to a term across all documents."""
    with handle_errors(), open_engine(database) as engine:
        console.print(str(engine.term_reference_count(term)), highlight=False)


# ── Maintenance ──────────────────────────────────────────────────────────


@app.command()
def delete(
    guid: str = typer.Argument(..., help="Document GUID"),
    database: str | None = DB_OPTION,
) -> None:
    """Delete a document and its index entries."""
    with handle_errors(), open_engine(database) as engine:
        removed = engine.delete_by_guid(guid)
    console.print(f"Deleted {removed} document(s)", highlight=False)


@app.command()
def backup(
    destination: Path = typer.Argument(..., dir_okay=False, help="Backup file to write"),
    database: str | None = DB_OPTION,
) -> None:
    """Copy the index to a backup database file."""
    with handle_errors(), open_engine(database) as engine:
        engine.backup(str(destination))
    console.print(f"Backed up index to {destination}", highlight=False)
