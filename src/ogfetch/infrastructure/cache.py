"""Time-bounded in-memory cache of metadata records, keyed by URL.

A record is fresh while ``now - inserted_at < duration``. Stale entries
are never returned but stay in place until overwritten or invalidated.

Two callers missing on the same URL at once will both fetch; the cache
does not collapse concurrent requests.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ogfetch.domain.metadata import MetadataRecord


@dataclass(frozen=True)
class CacheEntry:
    """A cached record and the clock reading at insertion."""

    url: str
    record: MetadataRecord
    inserted_at: float


class MetadataCache:
    """URL → :class:`MetadataRecord` memo with a freshness window."""

    def __init__(
        self,
        duration_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if duration_seconds < 0:
            msg = "duration_seconds cannot be negative"
            raise ValueError(msg)
        self._duration = duration_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, url: str) -> MetadataRecord | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= self._duration:
            return None
        return entry.record

    def put(self, url: str, record: MetadataRecord) -> None:
        self._entries[url] = CacheEntry(url=url, record=record, inserted_at=self._clock())

    def invalidate(self, url: str) -> None:
        self._entries.pop(url, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
