"""Command: print a note's parsed frontmatter."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ogfetch.commands._base import OgCommand

if TYPE_CHECKING:
    from ogfetch.commands._context import AppContext


@click.command(
    cls=OgCommand,
    examples="""\
  ogfetch show notes/article.md
  ogfetch --json show notes/article.md""",
)
@click.argument("path")
@click.pass_obj
def show(app: AppContext, path: str) -> None:
    """Show the frontmatter of the note at PATH."""
    from ogfetch.services.fetch import FetchService

    app.emit(FetchService(app.workspace).show(path))
