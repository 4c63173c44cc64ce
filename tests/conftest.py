"""Shared pytest fixtures and test helpers for ogfetch tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog
from click.testing import CliRunner

from ogfetch.commands._context import AppContext
from ogfetch.config.settings import OgSettings
from ogfetch.infrastructure.workspace import Workspace
from ogfetch.services.telemetry import disable_telemetry

API_KEY = "test-key"

PAGE_PAYLOAD: dict[str, Any] = {
    "hybridGraph": {
        "title": "A",
        "description": "B",
        "image": "https://a.test/i.png",
        "favicon": "https://a.test/favicon.ico",
    }
}


class FakeProvider:
    """Scripted OpenGraph provider backed by ``httpx.MockTransport``.

    ``responses`` is consumed in order; the last entry repeats. Each entry
    is a JSON-able payload, an int status code, or an exception to raise.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses: list[Any] = list(responses) or [PAGE_PAYLOAD]
        self.requests: list[httpx.Request] = []
        self.screenshot_url = "https://cdn.test/shot.png"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/v1/screenshot"):
            return httpx.Response(200, json={"url": self.screenshot_url})
        index = min(len(self.fetches) - 1, len(self.responses) - 1)
        item = self.responses[index]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            return httpx.Response(item)
        return httpx.Response(200, content=json.dumps(item).encode())

    @property
    def fetches(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of settings resolution."""
    monkeypatch.delenv("OGFETCH_CONFIG", raising=False)
    monkeypatch.delenv("OGFETCH_API__API_KEY", raising=False)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """--verbose CLI runs enable telemetry in the test thread; undo it."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Drop the stderr handler configure_logging installs during CLI runs."""
    root = logging.getLogger()
    level = root.level
    og_level = logging.getLogger("ogfetch").level
    yield
    root.handlers[:] = [
        h for h in root.handlers if not isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
    ]
    root.setLevel(level)
    logging.getLogger("ogfetch").setLevel(og_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings(tmp_path: Path) -> OgSettings:
    """Settings rooted at tmp_path with a key and no backoff."""
    return OgSettings.from_cli(root=tmp_path, api_key=API_KEY).with_api(backoff_delay=0)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def workspace(settings: OgSettings, provider: FakeProvider, sleeps: list[float]) -> Workspace:
    ws = Workspace(settings, client=provider.client(), sleep=sleeps.append)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_root(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, provider: FakeProvider
) -> None:
    """Run CLI commands from tmp_path against the fake provider.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)
    (tmp_path / "ogfetch.toml").write_text(
        f'[api]\napi_key = "{API_KEY}"\nbackoff_delay = 0\n\n[batch]\ndelay_ms = 0\n'
    )
    monkeypatch.setattr(AppContext, "client_factory", staticmethod(provider.client))


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_note(root: Path, name: str, text: str) -> Path:
    """Write a note under *root*, creating parent directories."""
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    return path


@pytest.fixture
def note(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing notes under tmp_path."""

    def _make(name: str, text: str) -> Path:
        return write_note(tmp_path, name, text)

    return _make
