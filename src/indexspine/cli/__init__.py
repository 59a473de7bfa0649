"""
CLI layer for index-spine.

Provides a Typer application whose commands delegate to
:class:`~indexspine.engine.IndexEngine`.  This package handles only
terminal transport: argument parsing, coloured output and table formatting.

Entry point::

    index-spine --help
"""

from indexspine.cli.app import app

__all__ = ["app"]
