"""Command: fetch OpenGraph metadata for one note."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ogfetch.commands._base import OgCommand, policy_options

if TYPE_CHECKING:
    from ogfetch.commands._context import AppContext


@click.command(
    cls=OgCommand,
    examples="""\
  ogfetch fetch notes/article.md
  ogfetch fetch notes/article.md --overwrite
  ogfetch fetch notes/new.md --create --url https://example.com
  ogfetch --json fetch notes/article.md --refresh""",
)
@click.argument("path")
@click.option("--url", default=None, help="URL to fetch (default: the note's url field).")
@click.option("--create", is_flag=True, help="Create the note if it does not exist.")
@click.option("--refresh", is_flag=True, help="Ignore any cached metadata for the URL.")
@policy_options
@click.pass_obj
def fetch(
    app: AppContext,
    path: str,
    url: str | None,
    create: bool,
    refresh: bool,
    overwrite_existing: bool | None,
    create_new_properties: bool | None,
    write_errors: bool | None,
    update_fetch_date: bool | None,
) -> None:
    """Fetch metadata for the note at PATH and update its frontmatter."""
    from ogfetch.services.fetch import FetchService

    if create and not url:
        raise click.UsageError("--create requires --url")

    policy = app.policy(
        overwrite_existing=overwrite_existing,
        create_new_properties=create_new_properties,
        write_errors=write_errors,
        update_fetch_date=update_fetch_date,
    )
    app.emit(
        FetchService(app.workspace).process_document(
            path, url=url, policy=policy, create=create, refresh=refresh
        )
    )
