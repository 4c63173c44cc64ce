"""Command: refresh metadata for many notes, one at a time."""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from ogfetch.commands._base import OgCommand, policy_options

if TYPE_CHECKING:
    from ogfetch.commands._context import AppContext
    from ogfetch.services.batch import CancelToken
    from ogfetch.services.result import ServiceResult


@contextmanager
def _cancel_on_interrupt(token: CancelToken) -> Iterator[None]:
    """Turn Ctrl-C into a cancellation request for the running batch."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(_signum: int, _frame: Any) -> None:
        click.echo("Cancelling after the current document...", err=True)
        token.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@click.command(
    cls=OgCommand,
    examples="""\
  ogfetch batch
  ogfetch batch reading/ --delay 500
  ogfetch batch reading/a.md reading/b.md --overwrite
  ogfetch batch reading/ --include-complete --limit 10""",
)
@click.argument("targets", nargs=-1)
@click.option("--delay", type=click.IntRange(min=0), default=None, help="Pause between notes (ms).")
@click.option(
    "--include-complete/--skip-complete",
    default=None,
    help="Also process notes whose metadata is complete (default: config).",
)
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Process at most N notes.")
@policy_options
@click.pass_obj
def batch(
    app: AppContext,
    targets: tuple[str, ...],
    delay: int | None,
    include_complete: bool | None,
    limit: int | None,
    overwrite_existing: bool | None,
    create_new_properties: bool | None,
    write_errors: bool | None,
    update_fetch_date: bool | None,
) -> None:
    """Refresh notes under a directory (default: root) or the given FILES.

    Directories expand to their eligible notes; files are processed as
    given. Ctrl-C stops the batch after the current note.
    """
    from ogfetch.services.batch import BatchService, CancelToken

    service = BatchService(app.workspace)
    if include_complete is None:
        include_complete = not app.settings.batch.skip_existing_data
    paths: list[Path] | None = None
    if targets:
        paths = []
        for target in targets:
            resolved = app.workspace.resolve(target)
            if resolved.is_dir():
                found = service.find_eligible(resolved, include_complete=include_complete)
                paths.extend(f.path for f in found)
            else:
                paths.append(resolved)

    out = app.output_settings()

    def progress(index: int, total: int, result: ServiceResult) -> None:
        if out.json_output or out.quiet:
            return
        status = "ok" if result.ok else "error"
        click.echo(f"[{index}/{total}] {status} {result.data.get('path', '')}", err=True)

    policy = app.policy(
        overwrite_existing=overwrite_existing,
        create_new_properties=create_new_properties,
        write_errors=write_errors,
        update_fetch_date=update_fetch_date,
    )
    token = CancelToken()
    with _cancel_on_interrupt(token):
        result = service.run(
            paths,
            include_complete=include_complete,
            policy=policy,
            delay=delay / 1000 if delay is not None else None,
            limit=limit,
            cancel=token,
            on_progress=progress,
        )
    app.emit(result)
