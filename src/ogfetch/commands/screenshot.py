"""Command: request a page screenshot from the provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ogfetch.commands._base import OgCommand

if TYPE_CHECKING:
    from ogfetch.commands._context import AppContext


@click.command(
    cls=OgCommand,
    examples="""\
  ogfetch screenshot https://example.com
  ogfetch -q screenshot https://example.com""",
)
@click.argument("url")
@click.pass_obj
def screenshot(app: AppContext, url: str) -> None:
    """Print a screenshot image URL for URL."""
    from ogfetch.services.fetch import FetchService

    app.emit(FetchService(app.workspace).screenshot(url))
