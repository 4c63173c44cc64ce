"""Metadata records and provider-response normalization.

The provider returns up to three alternative views of a page. They are
read as named optional fields and merged with a fixed precedence:

    hybridGraph  >  openGraph  >  htmlInferred

Per canonical field, the first non-empty value wins.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ogfetch.errors import InvalidResponse

SOURCE_PRECEDENCE: tuple[str, ...] = ("hybrid_graph", "open_graph", "html_inferred")

_TEXT_FIELDS: tuple[str, ...] = ("title", "description", "type", "site_name")


class MetadataRecord(BaseModel):
    """Canonical metadata for one URL. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    image: str | None = None
    favicon: str | None = None
    url: str
    type: str = ""
    site_name: str = ""
    fetched_at: datetime


class ImageRef(BaseModel):
    """Nested image object (``{"url": ...}``)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str | None = None


class SourceView(BaseModel):
    """One provider view of a page. All fields optional."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str | None = None
    description: str | None = None
    image: str | ImageRef | None = None
    favicon: str | None = None
    url: str | None = None
    type: str | None = None
    site_name: str | None = None

    @field_validator("image", mode="before")
    @classmethod
    def _first_image(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[0] if value else None
        return value

    def image_url(self) -> str | None:
        if isinstance(self.image, ImageRef):
            return self.image.url
        return self.image


class ProviderResponse(BaseModel):
    """The three alternative views, keyed by their wire names."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    hybrid_graph: SourceView | None = Field(default=None, alias="hybridGraph")
    open_graph: SourceView | None = Field(default=None, alias="openGraph")
    html_inferred: SourceView | None = Field(default=None, alias="htmlInferred")

    def sources(self) -> list[SourceView]:
        """Present views, highest precedence first."""
        views = (getattr(self, name) for name in SOURCE_PRECEDENCE)
        return [view for view in views if view is not None]


def _clean(value: str | None) -> str | None:
    """Collapse whitespace to one line; empty becomes None."""
    if value is None:
        return None
    collapsed = " ".join(value.split())
    return collapsed or None


def _first(sources: list[SourceView], field: str) -> str | None:
    for source in sources:
        raw = source.image_url() if field == "image" else getattr(source, field)
        value = _clean(raw)
        if value is not None:
            return value
    return None


def parse_response(payload: Any) -> ProviderResponse:
    """Validate a decoded JSON payload into a :class:`ProviderResponse`.

    Raises:
        InvalidResponse: If the payload is not an object, a view has the
            wrong shape, or none of the three views is present.
    """
    if not isinstance(payload, dict):
        msg = f"Expected a JSON object, got {type(payload).__name__}"
        raise InvalidResponse(msg)
    try:
        response = ProviderResponse.model_validate(payload)
    except ValidationError as exc:
        msg = f"Malformed provider response: {exc.error_count()} invalid field(s)"
        raise InvalidResponse(msg) from exc
    if not response.sources():
        msg = "Response contains none of hybridGraph, openGraph, htmlInferred"
        raise InvalidResponse(msg)
    return response


def normalize(
    payload: Any,
    requested_url: str,
    *,
    now: datetime | None = None,
) -> MetadataRecord:
    """Build a :class:`MetadataRecord` from a provider payload.

    ``fetched_at`` is the normalization moment, never a provider value.
    """
    sources = parse_response(payload).sources()
    values: dict[str, Any] = {name: _first(sources, name) or "" for name in _TEXT_FIELDS}
    return MetadataRecord(
        **values,
        image=_first(sources, "image"),
        favicon=_first(sources, "favicon"),
        url=_first(sources, "url") or requested_url,
        fetched_at=now or datetime.now(UTC),
    )
