"""Tests for the time-bounded metadata cache."""

from datetime import UTC, datetime

import pytest

from ogfetch.domain.metadata import MetadataRecord
from ogfetch.infrastructure.cache import MetadataCache


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def _record(url: str = "https://a.test") -> MetadataRecord:
    return MetadataRecord(title="A", url=url, fetched_at=datetime(2024, 1, 1, tzinfo=UTC))


class TestFreshness:
    def test_fresh_until_boundary(self) -> None:
        clock = FakeClock()
        cache = MetadataCache(60, clock=clock)
        cache.put("https://a.test", _record())

        clock.now += 59.999
        assert cache.get("https://a.test") == _record()

        clock.now = 1000.0 + 60
        assert cache.get("https://a.test") is None

    def test_zero_duration_never_fresh(self) -> None:
        cache = MetadataCache(0, clock=FakeClock())
        cache.put("https://a.test", _record())
        assert cache.get("https://a.test") is None

    def test_stale_entry_kept_until_overwritten(self) -> None:
        clock = FakeClock()
        cache = MetadataCache(10, clock=clock)
        cache.put("https://a.test", _record())
        clock.now += 100
        assert cache.get("https://a.test") is None
        assert len(cache) == 1

        cache.put("https://a.test", _record())
        assert cache.get("https://a.test") is not None

    def test_negative_duration_rejected(self) -> None:
        with pytest.raises(ValueError):
            MetadataCache(-1)


class TestMutation:
    def test_keys_are_exact_urls(self) -> None:
        cache = MetadataCache(60, clock=FakeClock())
        cache.put("https://a.test", _record())
        assert cache.get("https://a.test/") is None
        assert cache.get("https://a.test") is not None

    def test_invalidate_and_clear(self) -> None:
        cache = MetadataCache(60, clock=FakeClock())
        cache.put("https://a.test", _record())
        cache.put("https://b.test", _record("https://b.test"))
        cache.invalidate("https://a.test")
        cache.invalidate("https://never.test")
        assert cache.get("https://a.test") is None
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0
