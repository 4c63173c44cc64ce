"""Per-invocation state handed to every subcommand via ``@click.pass_obj``."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, ClassVar

import click

from ogfetch.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    import httpx

    from ogfetch.config.models import WritePolicy
    from ogfetch.config.settings import OgSettings
    from ogfetch.infrastructure.workspace import Workspace
    from ogfetch.services.result import ServiceResult


class AppContext:
    """Settings, a lazily built workspace, and result emission.

    Building the context configures logging and, with ``--verbose``,
    switches telemetry on. No HTTP client exists until a command asks
    for :attr:`workspace`.
    """

    # Tests swap in a client bound to a mock transport. None lets the
    # fetcher create and own a real client.
    client_factory: ClassVar[Callable[[], httpx.Client] | None] = None

    def __init__(self, settings: OgSettings) -> None:
        from ogfetch.config.logging import configure_logging
        from ogfetch.services.telemetry import enable_telemetry

        self.settings = settings
        self._workspace: Workspace | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        if self._workspace is None:
            from ogfetch.infrastructure.workspace import Workspace

            factory = type(self).client_factory
            self._workspace = Workspace(self.settings, client=factory() if factory else None)
        return self._workspace

    def policy(self, **overrides: bool | None) -> WritePolicy:
        """Configured write policy with CLI flag overrides applied."""
        return self.settings.policy.merged(**overrides)

    def output_settings(self) -> OutputSettings:
        s = self.settings
        return OutputSettings(json_output=s.json_output, quiet=s.quiet, verbose=s.verbose)

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and set the exit status.

        Successes go to stdout with warnings on stderr (JSON output
        already embeds them). Failures go to stderr and exit 1.
        """
        out = self.output_settings()
        text = format_result(result, settings=out)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)
        click.echo(text)
        if out.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)

    def close(self) -> None:
        if self._workspace is not None:
            self._workspace.close()
            self._workspace = None
