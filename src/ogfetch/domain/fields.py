"""Managed frontmatter fields and the key-name table.

Each logical field maps to a configurable frontmatter key. The mapping
is resolved once per operation into a :class:`FieldTable`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ogfetch.config.models import FieldNames
    from ogfetch.domain.frontmatter import FrontmatterBlock, FrontmatterValue


class ManagedField(StrEnum):
    """Logical fields the planner may write."""

    TITLE = "title"
    DESCRIPTION = "description"
    IMAGE = "image"
    FAVICON = "favicon"
    FETCH_DATE = "fetch_date"
    URL = "url"


# Fields filled from the metadata record (fetch_date is a timestamp).
RECORD_FIELDS: tuple[ManagedField, ...] = (
    ManagedField.TITLE,
    ManagedField.DESCRIPTION,
    ManagedField.IMAGE,
    ManagedField.FAVICON,
    ManagedField.URL,
)

# Fields whose absence marks a note as missing metadata.
COMPLETENESS_FIELDS: tuple[ManagedField, ...] = (
    ManagedField.TITLE,
    ManagedField.DESCRIPTION,
    ManagedField.IMAGE,
)

DEFAULT_KEYS: dict[ManagedField, str] = {
    ManagedField.TITLE: "og_title",
    ManagedField.DESCRIPTION: "og_description",
    ManagedField.IMAGE: "og_image",
    ManagedField.FAVICON: "og_favicon",
    ManagedField.FETCH_DATE: "og_last_fetch",
    ManagedField.URL: "url",
}

# Error bookkeeping keys (not configurable).
ERROR_KEY = "og_error"
ERROR_TIMESTAMP_KEY = "og_error_timestamp"
ERROR_CODE_KEY = "og_error_code"
ERROR_KEYS: tuple[str, ...] = (ERROR_KEY, ERROR_TIMESTAMP_KEY, ERROR_CODE_KEY)


@dataclass(frozen=True)
class FieldTable:
    """Resolved logical-field → frontmatter-key mapping."""

    keys: dict[ManagedField, str]

    @classmethod
    def default(cls) -> FieldTable:
        return cls(dict(DEFAULT_KEYS))

    @classmethod
    def from_names(cls, names: FieldNames) -> FieldTable:
        """Resolve configured names, falling back to defaults for blanks."""
        keys: dict[ManagedField, str] = {}
        for field in ManagedField:
            configured = str(getattr(names, field.value, "") or "").strip()
            keys[field] = configured or DEFAULT_KEYS[field]
        return cls(keys)

    def key(self, field: ManagedField) -> str:
        return self.keys[field]

    def missing(self, block: FrontmatterBlock) -> list[ManagedField]:
        """Completeness fields that are absent or empty in *block*."""
        return [f for f in COMPLETENESS_FIELDS if not is_populated(block.get(self.key(f)))]

    def url_of(self, block: FrontmatterBlock) -> str | None:
        """The URL stored in *block*, if it is a non-empty string."""
        value = block.get(self.key(ManagedField.URL))
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


def is_populated(value: FrontmatterValue) -> bool:
    """A field counts as populated unless it is null, ``""`` or ``[]``."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list):
        return bool(value)
    return True
