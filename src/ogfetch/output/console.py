"""Console factory and colour theme for human-readable output."""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

OG_THEME = Theme(
    {
        "og.ok": "bold green",
        "og.error": "bold red",
        "og.warning": "bold yellow",
        "og.op": "bold cyan",
        "og.key": "dim",
        "og.path": "dim",
        "og.url": "underline blue",
        "og.title": "bold",
        "og.missing": "yellow",
        "og.cached": "magenta",
    }
)

DEFAULT_WIDTH = 120


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Return a themed console writing into a fresh buffer.

    Colour is dropped automatically when the buffer is not a terminal,
    which covers CliRunner and pipes.
    """
    return Console(
        file=StringIO(),
        theme=OG_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    buffer = console.file
    if not isinstance(buffer, StringIO):
        raise TypeError("console was not created by create_console()")
    return buffer.getvalue()
