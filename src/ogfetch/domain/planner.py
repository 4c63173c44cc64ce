"""Document mutation planner: decides which frontmatter fields to write.

A managed field is written when:

    (create_new_properties AND field is absent/empty)
    OR (overwrite_existing AND field is populated)

``fetch_date`` ignores that rule: with ``update_fetch_date`` it is
written on every successful run. Fetched values that are empty are never
written, so a missing favicon never clobbers an existing one.

Planning never mutates its input; it returns a new block.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ogfetch.domain.fields import (
    ERROR_CODE_KEY,
    ERROR_KEY,
    ERROR_KEYS,
    ERROR_TIMESTAMP_KEY,
    RECORD_FIELDS,
    FieldTable,
    ManagedField,
    is_populated,
)
from ogfetch.errors import ConfigurationError, OgFetchError

if TYPE_CHECKING:
    from ogfetch.config.models import WritePolicy
    from ogfetch.domain.frontmatter import FrontmatterBlock, FrontmatterValue
    from ogfetch.domain.metadata import MetadataRecord


def format_timestamp(moment: datetime) -> str:
    """UTC ISO 8601 with milliseconds and a ``Z`` suffix."""
    utc = moment.astimezone(UTC) if moment.tzinfo else moment.replace(tzinfo=UTC)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_policy(policy: WritePolicy) -> None:
    """Refuse a policy under which no managed field could ever be written."""
    if not policy.create_new_properties and not policy.overwrite_existing:
        msg = "At least one of create_new_properties or overwrite_existing must be enabled"
        raise ConfigurationError(msg)


def should_write(current: FrontmatterValue, policy: WritePolicy) -> bool:
    """Apply the create/overwrite rule to the current value of a field."""
    if is_populated(current):
        return policy.overwrite_existing
    return policy.create_new_properties


def record_values(record: MetadataRecord) -> dict[ManagedField, str | None]:
    """Values the record offers for each record-backed field."""
    return {
        ManagedField.TITLE: record.title,
        ManagedField.DESCRIPTION: record.description,
        ManagedField.IMAGE: record.image,
        ManagedField.FAVICON: record.favicon,
        ManagedField.URL: record.url,
    }


def plan(
    block: FrontmatterBlock,
    record: MetadataRecord,
    policy: WritePolicy,
    fields: FieldTable | None = None,
    *,
    now: datetime | None = None,
) -> FrontmatterBlock:
    """Return the frontmatter after applying *record* under *policy*.

    Raises:
        ConfigurationError: If both create and overwrite are disabled.
            Raised before any field is written.
    """
    validate_policy(policy)
    table = fields or FieldTable.default()
    updated: FrontmatterBlock = dict(block)

    values = record_values(record)
    for field in RECORD_FIELDS:
        new_value = values[field]
        if not new_value:
            continue
        key = table.key(field)
        if should_write(updated.get(key), policy):
            updated[key] = new_value

    if policy.update_fetch_date:
        updated[table.key(ManagedField.FETCH_DATE)] = format_timestamp(now or datetime.now(UTC))

    for key in ERROR_KEYS:
        updated.pop(key, None)

    return updated


def plan_error(
    block: FrontmatterBlock,
    error: Exception,
    policy: WritePolicy,
    *,
    now: datetime | None = None,
) -> FrontmatterBlock:
    """Record a failed run in *block*. Managed fields are left untouched.

    Returns *block* unchanged (as a copy) when error-writing is disabled.
    """
    updated: FrontmatterBlock = dict(block)
    if not policy.write_errors:
        return updated

    message = getattr(error, "message", None) or str(error) or type(error).__name__
    updated[ERROR_KEY] = message
    updated[ERROR_TIMESTAMP_KEY] = format_timestamp(now or datetime.now(UTC))
    if isinstance(error, OgFetchError):
        updated[ERROR_CODE_KEY] = error.code
    else:
        updated.pop(ERROR_CODE_KEY, None)
    return updated


def changed_keys(before: FrontmatterBlock, after: FrontmatterBlock) -> list[str]:
    """Keys added, removed, or given a different value, in *after* order."""
    changed = [k for k, v in after.items() if k not in before or before[k] != v]
    changed.extend(k for k in before if k not in after)
    return changed
