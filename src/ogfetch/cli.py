"""Entry point: the ``ogfetch`` command group and its global flags."""

from __future__ import annotations

from typing import Any

import click

from ogfetch import __version__
from ogfetch.commands import register_commands
from ogfetch.commands._context import AppContext
from ogfetch.config.settings import OgSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="ogfetch")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print one line per result.")
@click.option("-v", "--verbose", is_flag=True, help="Show states, error detail and timings.")
@click.option("--log-json", is_flag=True, help="Write stderr logs as JSON lines.")
@click.option(
    "-c", "--config", "config_path", default=None, help="Use this ogfetch.toml instead of searching."
)
@click.option("--api-key", default=None, help="OpenGraph.io app id; wins over config and env.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, api_key: str | None, **flags: Any) -> None:
    """Fetch OpenGraph metadata into Markdown frontmatter."""
    app = AppContext(OgSettings.from_cli(config_path=config_path, api_key=api_key, **flags))
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
