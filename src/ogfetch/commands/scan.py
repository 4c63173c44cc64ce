"""Command: list notes eligible for a batch run."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ogfetch.commands._base import OgCommand

if TYPE_CHECKING:
    from ogfetch.commands._context import AppContext


@click.command(
    cls=OgCommand,
    examples="""\
  ogfetch scan
  ogfetch scan reading/ --include-complete
  ogfetch -q scan reading/""",
)
@click.argument("directory", required=False)
@click.option(
    "--include-complete/--skip-complete",
    default=None,
    help="List notes whose metadata is already complete (default: config).",
)
@click.pass_obj
def scan(app: AppContext, directory: str | None, include_complete: bool | None) -> None:
    """List notes under DIRECTORY that carry a URL, with their missing fields."""
    from ogfetch.services.batch import BatchService

    app.emit(BatchService(app.workspace).scan(directory, include_complete=include_complete))
