"""OpenGraph provider client with retry and exponential backoff.

Request shape (opengraph.io site API)::

    GET {api_url}/{url-encoded target}?app_id={api_key}

Each failed attempt (non-2xx status, transport error, undecodable body,
or a payload the normalizer rejects) waits the current backoff, then the
backoff doubles. After the last attempt :class:`FetchExhausted` is raised,
chained to the final underlying error.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import structlog

from ogfetch import __version__
from ogfetch.domain.metadata import MetadataRecord, normalize
from ogfetch.errors import FetchExhausted, InvalidResponse, MissingCredential, ScreenshotFailure
from ogfetch.infrastructure.cache import MetadataCache

if TYPE_CHECKING:
    from ogfetch.config.models import ApiConfig

log = structlog.get_logger(__name__)

_DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": f"ogfetch/{__version__}",
    "Accept": "application/json",
}

_ATTEMPT_ERRORS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    json.JSONDecodeError,
    UnicodeDecodeError,
    InvalidResponse,
)


def build_request_url(api_url: str, url: str) -> str:
    """Endpoint for *url*: the target is percent-encoded as one path segment."""
    return f"{api_url.rstrip('/')}/{quote(url, safe='')}"


def request_payload(client: httpx.Client, url: str, *, api_key: str, api_url: str) -> Any:
    """One attempt: GET the provider and decode the JSON body."""
    response = client.get(build_request_url(api_url, url), params={"app_id": api_key})
    response.raise_for_status()
    return response.json()


def fetch_metadata(
    client: httpx.Client,
    url: str,
    *,
    api_key: str,
    api_url: str,
    max_retries: int,
    initial_backoff_ms: float,
    sleep: Callable[[float], None] = time.sleep,
) -> MetadataRecord:
    """Fetch and normalize metadata for *url* with bounded retries.

    Raises:
        MissingCredential: *api_key* is empty. No request is made.
        FetchExhausted: Every one of *max_retries* attempts failed.
    """
    if not api_key.strip():
        raise MissingCredential()
    if max_retries < 1:
        msg = "max_retries must be at least 1"
        raise ValueError(msg)

    backoff_ms = initial_backoff_ms
    last_error: Exception | None = None
    for attempt in range(1, max_retries + 1):
        try:
            payload = request_payload(client, url, api_key=api_key, api_url=api_url)
            return normalize(payload, url)
        except _ATTEMPT_ERRORS as exc:
            last_error = exc
            log.debug(
                "fetch.attempt_failed",
                url=url,
                attempt=attempt,
                max_retries=max_retries,
                error=str(exc),
            )
        if attempt == max_retries:
            break
        sleep(backoff_ms / 1000)
        backoff_ms *= 2

    log.warning("fetch.exhausted", url=url, attempts=max_retries, error=str(last_error))
    raise FetchExhausted(url, max_retries) from last_error


def fetch_screenshot(client: httpx.Client, url: str, *, api_key: str, base_url: str) -> str:
    """Ask the provider for a screenshot of *url* and return its image URL.

    Raises:
        MissingCredential: *api_key* is empty.
        ScreenshotFailure: The request failed or returned no URL.
    """
    if not api_key.strip():
        raise MissingCredential()
    try:
        response = client.post(
            f"{base_url.rstrip('/')}/v1/screenshot",
            headers={"Authorization": f"Bearer {api_key}"},
            json={"url": url},
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        msg = f"Failed to fetch screenshot for {url}: {exc}"
        raise ScreenshotFailure(msg) from exc

    shot = data.get("url") if isinstance(data, dict) else None
    if not isinstance(shot, str) or not shot:
        msg = f"Failed to fetch screenshot for {url}: response has no url"
        raise ScreenshotFailure(msg)
    return shot


@dataclass(frozen=True)
class FetchOutcome:
    """A record plus whether it came from the cache."""

    record: MetadataRecord
    cached: bool


class MetadataFetcher:
    """Cache-aware front for :func:`fetch_metadata`.

    Owns a lazily created ``httpx.Client`` unless one is injected.
    """

    def __init__(
        self,
        api: ApiConfig,
        *,
        cache: MetadataCache | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api = api
        self._cache = cache if cache is not None else MetadataCache(api.cache_duration)
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    def __enter__(self) -> MetadataFetcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def cache(self) -> MetadataCache:
        return self._cache

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(headers=_DEFAULT_HEADERS, follow_redirects=True)
            self._owns_client = True
        return self._client

    def fetch(self, url: str, *, refresh: bool = False) -> FetchOutcome:
        """Return metadata for *url*, from the cache when still fresh."""
        if refresh:
            self._cache.invalidate(url)
        else:
            cached = self._cache.get(url)
            if cached is not None:
                log.debug("fetch.cache_hit", url=url)
                return FetchOutcome(record=cached, cached=True)

        record = fetch_metadata(
            self._get_client(),
            url,
            api_key=self._api.api_key,
            api_url=self._api.api_url,
            max_retries=self._api.retries,
            initial_backoff_ms=self._api.backoff_delay,
            sleep=self._sleep,
        )
        self._cache.put(url, record)
        return FetchOutcome(record=record, cached=False)

    def screenshot(self, url: str) -> str:
        return fetch_screenshot(
            self._get_client(),
            url,
            api_key=self._api.api_key,
            base_url=self._api.base_url,
        )

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            client.close()
