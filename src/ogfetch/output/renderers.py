"""Rich views of a ServiceResult, one per operation.

:func:`render_result` picks a view from ``_VIEWS`` by ``result.op``; ops
without a dedicated view get a plain key/value listing. Output goes to a
StringIO-backed console, so CliRunner and pipes see text without ANSI.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.padding import Padding
from rich.table import Column, Table
from rich.text import Text
from rich.tree import Tree

from ogfetch.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from ogfetch.services.result import ServiceResult

# Value styles by field name; anything ending in "url" is a link.
_VALUE_STYLES = {"path": "og.path", "title": "og.title"}


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* as human-readable text.

    With *verbose*, lifecycle states, error detail and the ``meta`` block
    (including the span tree) are shown too.
    """
    console = create_console()
    view = _VIEWS.get(result.op, _show_generic) if result.ok else _show_error
    view(result, console, verbose=verbose)
    if verbose and result.meta:
        _show_meta(console, result.meta)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One-line output for ``--quiet``; scan lists paths, screenshot its URL."""
    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {message}"
    if result.op == "scan":
        return "\n".join(str(f["path"]) for f in result.data.get("files", []))
    if result.op == "screenshot":
        return str(result.data.get("screenshot_url", ""))
    return f"OK: {result.op}"


def _headline(console: Console, op: str, *, ok: bool = True, message: str = "") -> None:
    parts = [
        Text("OK" if ok else "ERROR", style="og.ok" if ok else "og.error"),
        Text(f"  {op}", style="og.op"),
    ]
    if message:
        parts += [Text(" — "), Text(message)]
    console.print(*parts, sep="")


def _kv(console: Console, key: str, value: Any) -> None:
    style = "og.url" if key.endswith("url") else _VALUE_STYLES.get(key, "")
    if isinstance(value, list):
        shown = ", ".join(map(str, value)) or "-"
    else:
        shown = str(value)
    console.print(Text(f"  {key}: ", style="og.key"), Text(shown, style=style), sep="")


def _kv_present(console: Console, data: dict[str, Any], *keys: str) -> None:
    for key in keys:
        if data.get(key):
            _kv(console, key, data[key])


def _states(console: Console, data: dict[str, Any]) -> None:
    if data.get("states"):
        _kv(console, "states", " → ".join(data["states"]))


def _show_meta(console: Console, meta: dict[str, Any]) -> None:
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in meta.items():
        if key == "telemetry":
            console.print(Padding(_span_tree(value), (0, 0, 0, 4)))
        else:
            console.print(Text(f"    {key}: {value}"))


def _span_label(span: dict[str, Any]) -> Text:
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        timing = "bold red"
    elif duration > 100:
        timing = "yellow"
    else:
        timing = "dim"
    label = Text.assemble((f"{duration:.2f}ms", timing), "  ", span.get("name", "?"))
    notes = span.get("annotations") or {}
    if notes:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in notes.items()) + ")", style="dim")
    return label


def _span_tree(span: dict[str, Any], tree: Tree | None = None) -> Tree:
    """Build a Rich tree mirroring the telemetry span dict."""
    node = Tree(_span_label(span)) if tree is None else tree.add(_span_label(span))
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


def _show_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    _headline(console, result.op, ok=False, message=err.message if err else "Unknown error")
    if err:
        _kv(console, "code", err.code)
    _kv_present(console, result.data, "path", "url")
    if not verbose:
        return
    _states(console, result.data)
    if err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}"))


def _show_fetch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _headline(console, result.op)
    _kv_present(console, d, "path", "url", "title")
    _kv(console, "fields_changed", d.get("fields_changed", []))
    if d.get("created"):
        _kv(console, "created", True)
    elif not d.get("written"):
        console.print(Text("  unchanged", style="dim"))
    if d.get("cached"):
        console.print(Text("  (from cache)", style="og.cached"))
    if verbose:
        _states(console, d)


def _show_note(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _kv(console, "path", d.get("path", ""))
    if not d.get("has_frontmatter"):
        console.print(Text("  no frontmatter", style="og.missing"))
        return

    table = Table(Column("Key", style="og.key", no_wrap=True), "Value", pad_edge=False)
    for key, value in d.get("frontmatter", {}).items():
        table.add_row(Text(key), Text(json.dumps(value, ensure_ascii=False)))
    console.print(table)

    if d.get("missing_fields"):
        console.print(Text(f"  missing: {', '.join(d['missing_fields'])}", style="og.missing"))


def _show_scan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    files = result.data.get("files", [])
    table = Table(pad_edge=False)
    table.add_column("Path", style="og.path", no_wrap=True)
    table.add_column("URL", style="og.url")
    table.add_column("Missing", style="og.missing")
    for info in files:
        missing = ", ".join(info.get("missing_fields", [])) or "complete"
        table.add_row(Text(str(info.get("path", ""))), Text(str(info.get("url", ""))), Text(missing))
    console.print(table)
    console.print(Text(f"\n{result.data.get('count', len(files))} eligible notes"))


def _show_batch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _headline(console, result.op)
    _kv(console, "processed", f"{d.get('processed', 0)}/{d.get('total', 0)}")
    _kv(console, "success", d.get("success_count", 0))
    _kv(console, "errors", d.get("error_count", 0))
    if d.get("cancelled"):
        console.print(Text("  cancelled", style="og.warning"))

    for entry in d.get("results", []):
        if not entry.get("ok"):
            line = Text(f"{entry['path']}: {entry.get('error')}")
            console.print(Text("  error ", style="og.error"), line, sep="")
        elif verbose:
            console.print(Text("  ok ", style="og.ok"), Text(entry["path"]), sep="")


def _show_screenshot(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _headline(console, result.op)
    _kv(console, "url", result.data.get("url", ""))
    _kv(console, "screenshot_url", result.data.get("screenshot_url", ""))


def _show_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _headline(console, result.op)
    for key, value in result.data.items():
        _kv(console, key, value)


_VIEWS: dict[str, Callable[..., None]] = {
    "fetch": _show_fetch,
    "show": _show_note,
    "scan": _show_scan,
    "batch": _show_batch,
    "screenshot": _show_screenshot,
}
