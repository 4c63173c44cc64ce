"""Span timings for ``--verbose`` runs.

A traced service call opens a root span; pipeline phases inside it
(``fetch``, ``plan``, ``write``) open child spans via :func:`trace_span`.
The finished tree lands in ``ServiceResult.meta["telemetry"]`` and is
rendered by the output layer. Disabled runs cost one ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from ogfetch.services.result import ServiceResult

log = structlog.get_logger("ogfetch.telemetry")

_enabled: ContextVar[bool] = ContextVar("ogfetch_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("ogfetch_current_span", default=None)

_P = ParamSpec("_P")
_R = TypeVar("_R")


@dataclass
class Span:
    """One timed phase of a service call."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    elapsed: float | None = None

    @property
    def duration_ms(self) -> float:
        """Milliseconds between creation and :meth:`end`; 0 while open."""
        return 0.0 if self.elapsed is None else self.elapsed * 1000

    def end(self) -> None:
        self.elapsed = time.perf_counter() - self.started

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form stored in ``ServiceResult.meta["telemetry"]``."""
        node: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            node["annotations"] = dict(self.annotations)
        if self.children:
            node["children"] = [child.to_dict() for child in self.children]
        return node


@contextmanager
def _open(name: str, parent: Span | None) -> Iterator[Span]:
    span = Span(name=name, parent=parent)
    if parent is not None:
        parent.children.append(span)
    token = _current_span.set(span)
    ok = False
    try:
        yield span
        ok = True
    finally:
        span.end()
        _current_span.reset(token)
        log.debug(
            "telemetry.span",
            span=name,
            duration_ms=round(span.duration_ms, 2),
            ok=ok,
            annotations=span.annotations,
        )


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a phase inside a traced call.

    Yields None when telemetry is off or no traced call is running, so
    callers guard annotations with ``if span:``.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return
    with _open(name, parent) as span:
        yield span


def annotate(key: str, value: Any) -> None:
    """Attach *key* to the innermost open span, if any."""
    span = get_current_span()
    if span is not None:
        span.annotate(key, value)


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Open a span around a service method.

    The outermost traced call attaches the span tree to the returned
    ServiceResult. Nested traced calls only add a child span.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        parent = _current_span.get()
        with _open(func.__qualname__, parent) as span:
            result = func(*args, **kwargs)
        if parent is None and isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    if not _enabled.get():
        return None
    return _current_span.get()
