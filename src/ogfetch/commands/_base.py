"""Command class with an on-demand ``--examples`` flag, and shared option sets."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

_F = TypeVar("_F", bound=Callable[..., Any])


class OgCommand(click.Command):
    """Click command whose usage examples live behind ``--examples``, not ``--help``."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Print usage examples and exit.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(f"Examples for '{ctx.command_path}':\n")
            click.echo(self.examples)
            ctx.exit(0)


def policy_options(func: _F) -> _F:
    """Add the four write-policy flags. Unset flags defer to config."""
    options = [
        click.option(
            "--overwrite/--no-overwrite",
            "overwrite_existing",
            default=None,
            help="Replace fields that already have a value.",
        ),
        click.option(
            "--create-missing/--no-create-missing",
            "create_new_properties",
            default=None,
            help="Fill fields that are absent or empty.",
        ),
        click.option(
            "--write-errors/--no-write-errors",
            "write_errors",
            default=None,
            help="Record fetch failures in the note's frontmatter.",
        ),
        click.option(
            "--update-fetch-date/--no-update-fetch-date",
            "update_fetch_date",
            default=None,
            help="Stamp the fetch date on every successful run.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func
