"""Workspace: the single dependency injected into every service.

Owns the settings, resolves note paths against the workspace root, and
lazily builds the metadata fetcher (HTTP client + cache). One fetcher,
and therefore one cache, is shared by every operation in a process.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from ogfetch.domain.fields import FieldTable
from ogfetch.infrastructure import filesystem
from ogfetch.infrastructure.cache import MetadataCache
from ogfetch.infrastructure.provider import MetadataFetcher

if TYPE_CHECKING:
    import httpx

    from ogfetch.config.settings import OgSettings

logger = logging.getLogger(__name__)


class Workspace:
    """Settings, paths, documents and the shared fetcher."""

    def __init__(
        self,
        settings: OgSettings,
        *,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._client = client
        self._sleep = sleep
        self._clock = clock
        self._fetcher: MetadataFetcher | None = None

    @property
    def settings(self) -> OgSettings:
        return self._settings

    @property
    def root(self) -> Path:
        return self._settings.root

    @property
    def fields(self) -> FieldTable:
        """Field table resolved from the current settings."""
        return FieldTable.from_names(self._settings.fields)

    @property
    def fetcher(self) -> MetadataFetcher:
        """The shared fetcher (created lazily on first access)."""
        if self._fetcher is None:
            cache = MetadataCache(self._settings.api.cache_duration, clock=self._clock)
            self._fetcher = MetadataFetcher(
                self._settings.api,
                cache=cache,
                client=self._client,
                sleep=self._sleep,
            )
        return self._fetcher

    # --- Documents ---

    def resolve(self, path: Path | str) -> Path:
        """Resolve *path* against the workspace root."""
        p = Path(path).expanduser()
        return p if p.is_absolute() else self.root / p

    def read(self, path: Path) -> str:
        return filesystem.read_document(path)

    def write(self, path: Path, text: str) -> None:
        filesystem.write_document(path, text)

    def create(self, path: Path, text: str) -> None:
        filesystem.create_document(path, text)

    def notes(self, directory: Path | None = None) -> list[Path]:
        """Markdown notes under *directory* (default: the root)."""
        return filesystem.find_markdown_files(directory or self.root)

    def close(self) -> None:
        if self._fetcher is not None:
            self._fetcher.close()
            self._fetcher = None
