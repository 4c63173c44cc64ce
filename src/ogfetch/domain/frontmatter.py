"""Frontmatter codec for a line-based YAML subset.

Supported value types: null, booleans, numbers, strings, and flat string
arrays written as indented ``- item`` lines. Nested maps, anchors,
comments and multi-line scalars are not supported.

INVARIANT: every byte outside the delimited block is preserved. Only the
span between the opening and closing ``---`` lines is ever rewritten.

Known ambiguity: a number whose digits start with ``0`` (``0``, ``-0``,
``0.25``) reads back as a string, because zero-padded values such as
``007`` must stay strings. Floats are therefore written without the
leading zero (``.25``, ``-.5``) and never in exponent form.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import TypeAlias

FrontmatterValue: TypeAlias = str | int | float | bool | list[str] | None
FrontmatterBlock: TypeAlias = dict[str, FrontmatterValue]

# Opening ``---`` at offset 0, then the nearest line that is exactly ``---``.
# The optional content group is lazy so an empty block (``---\n---``) wins
# over a later delimiter.
_BLOCK_RE = re.compile(r"\A---\r?\n(?:(.*?)\r?\n)??---(?=\r?\n|\Z)", re.DOTALL)

_NUMBER_RE = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)$")
_LITERAL_RE = re.compile(r"^(?:true|false|null|\[\]|\d+(?:\.\d*)?|\.\d+)$")
_NEEDS_QUOTES_RE = re.compile(r"[\s:{}\[\]|>*&!%#`@,]")

_DELIMITER = "---"
_ARRAY_ITEM_PREFIX = "- "


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def find_block(document: str) -> re.Match[str] | None:
    """Return the match for the leading frontmatter block, if any."""
    return _BLOCK_RE.match(document)


def coerce_scalar(raw: str) -> FrontmatterValue:
    """Interpret a scalar value string.

    Precedence: ``null``, ``true``/``false``, numbers whose digits do not
    start with ``0`` (after an optional ``-``), then strings with one layer
    of matching quotes removed.
    """
    if raw == "null":
        return None
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "[]":
        return []
    if _NUMBER_RE.match(raw) and not raw.lstrip("-").startswith("0"):
        return float(raw) if "." in raw else int(raw)
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ('"', "'"):
        return raw[1:-1]
    return raw


def parse_block(text: str) -> FrontmatterBlock:
    """Parse the content between the delimiters into an ordered mapping."""
    block: FrontmatterBlock = {}
    array_key: str | None = None
    array_items: list[str] = []

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        if array_key is not None:
            if line.startswith(_ARRAY_ITEM_PREFIX):
                array_items.append(line[len(_ARRAY_ITEM_PREFIX) :].strip())
                continue
            block[array_key] = array_items
            array_key = None
            array_items = []

        colon = line.find(":")
        if colon <= 0:
            continue

        key = line[:colon].strip()
        value = line[colon + 1 :].strip()
        if not value:
            array_key = key
            array_items = []
            continue
        block[key] = coerce_scalar(value)

    if array_key is not None:
        block[array_key] = array_items

    return block


def parse_frontmatter(document: str) -> FrontmatterBlock | None:
    """Parse the leading frontmatter block of *document*.

    Returns ``None`` when the document has no block. Never raises.
    """
    match = find_block(document)
    if match is None:
        return None
    return parse_block(match.group(1) or "")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def needs_quotes(value: str) -> bool:
    """Whether a string must be double-quoted to survive a read back."""
    return (
        value == ""
        or bool(_NEEDS_QUOTES_RE.search(value))
        or value.startswith("-")
        or value[0] in ('"', "'")
        or bool(_LITERAL_RE.match(value))
    )


def format_float(value: float) -> str:
    """Positional notation that reads back as the same float.

    ``1e+16`` becomes ``10000000000000000.0`` and ``0.5`` becomes ``.5``.
    """
    if not math.isfinite(value):
        return repr(value)
    text = format(Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    sign, digits = ("-", text[1:]) if text.startswith("-") else ("", text)
    if digits.startswith("0."):
        digits = digits[1:]
    return sign + digits


def format_scalar(value: FrontmatterValue) -> str:
    """Render a non-array value as it appears after ``key: ``."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    text = str(value)
    return f'"{text}"' if needs_quotes(text) else text


def serialize_frontmatter(block: FrontmatterBlock) -> str:
    """Serialize *block* to frontmatter lines (without delimiters)."""
    lines: list[str] = []
    for key, value in block.items():
        if isinstance(value, (list, tuple)):
            if not value:
                lines.append(f"{key}: []")
                continue
            lines.append(f"{key}:")
            lines.extend(f"  - {item}" for item in value)
            continue
        lines.append(f"{key}: {format_scalar(value)}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Document rewriting
# ---------------------------------------------------------------------------


def replace_block(document: str, block_text: str) -> str:
    """Replace the frontmatter content of *document* with *block_text*.

    Only the span between the delimiter lines changes, and its lines take
    the newline style of the opening delimiter. Without a leading block, a
    new one is prepended and the whole document becomes the body.
    """
    match = find_block(document)
    if match is None:
        return f"{_DELIMITER}\n{block_text}\n{_DELIMITER}\n{document}"

    newline = "\n"
    if document.startswith(_DELIMITER + "\r\n"):
        newline = "\r\n"
        block_text = block_text.replace("\r\n", "\n").replace("\n", newline)
    if match.group(1) is not None:
        return document[: match.start(1)] + block_text + document[match.end(1) :]

    # Empty block: content goes right before the closing delimiter.
    if not block_text:
        return document
    closing = match.end() - len(_DELIMITER)
    return document[:closing] + block_text + newline + document[closing:]


def update_frontmatter(document: str, block: FrontmatterBlock) -> str:
    """Serialize *block* into *document*, preserving the body."""
    return replace_block(document, serialize_frontmatter(block))


def body_of(document: str) -> str:
    """Return everything after the closing delimiter line."""
    match = find_block(document)
    if match is None:
        return document
    rest = document[match.end() :]
    if rest.startswith("\r\n"):
        return rest[2:]
    if rest.startswith("\n"):
        return rest[1:]
    return rest
