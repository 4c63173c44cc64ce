"""Subcommand modules for ogfetch.

Provides register_commands() which uses deferred imports to keep
``ogfetch --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from ogfetch.commands.batch import batch
    from ogfetch.commands.fetch import fetch
    from ogfetch.commands.scan import scan
    from ogfetch.commands.screenshot import screenshot
    from ogfetch.commands.show import show

    cli.add_command(fetch)
    cli.add_command(batch)
    cli.add_command(scan)
    cli.add_command(show)
    cli.add_command(screenshot)
