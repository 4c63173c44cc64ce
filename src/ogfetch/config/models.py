"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ogfetch.toml only contains
overrides. A working setup needs only ``[api] api_key``.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, Field

# --- ogfetch.toml sections ---


class ApiConfig(BaseModel):
    """[api] section."""

    model_config = {"frozen": True}

    api_key: str = ""
    base_url: str = "https://api.opengraph.io"
    api_url: str = "https://opengraph.io/api/1.1/site"
    retries: int = Field(default=3, ge=1, le=10, description="Attempts per fetch")
    backoff_delay: int = Field(default=1000, ge=0, description="Initial backoff in ms")
    rate_limit: int = Field(default=60, ge=1, le=600, description="Requests per minute")
    cache_duration: int = Field(default=86400, ge=0, description="Cache freshness in seconds")


class FieldNames(BaseModel):
    """[fields] section: frontmatter key for each managed field."""

    model_config = {"frozen": True}

    title: str = "og_title"
    description: str = "og_description"
    image: str = "og_image"
    favicon: str = "og_favicon"
    fetch_date: str = "og_last_fetch"
    url: str = "url"


class WritePolicy(BaseModel):
    """[policy] section: when the planner may write a field."""

    model_config = {"frozen": True}

    create_new_properties: bool = True
    overwrite_existing: bool = False
    write_errors: bool = True
    update_fetch_date: bool = True

    def merged(self, **overrides: Any) -> Self:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return self.model_copy(update=changes)


class BatchConfig(BaseModel):
    """[batch] section."""

    model_config = {"frozen": True}

    delay_ms: int | None = Field(default=None, ge=0, description="Pause between documents")
    skip_existing_data: bool = True
