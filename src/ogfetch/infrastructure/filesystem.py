"""Filesystem operations for Markdown notes.

INVARIANT: documents are read and written byte-faithfully. Newlines are
never translated, so bodies with ``\\r\\n`` survive a rewrite unchanged.

OS errors are mapped to the typed failures in :mod:`ogfetch.errors`;
nothing here retries.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ogfetch.errors import (
    FileCreationFailure,
    FileReadFailure,
    FileWriteFailure,
    NoActiveDocument,
)

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = frozenset({".md", ".markdown"})

# Directories to skip when discovering notes.
_SKIP_DIRS = frozenset({".git", ".obsidian", ".trash", "node_modules"})


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_document(path: Path) -> str:
    """Read a note as text.

    Raises:
        NoActiveDocument: If *path* is not an existing file.
        FileReadFailure: If the file cannot be opened or is not UTF-8.
    """
    if not path.is_file():
        msg = f"No document found at {path}"
        raise NoActiveDocument(msg)
    try:
        with path.open(encoding="utf-8", newline="") as fh:
            return fh.read()
    except UnicodeDecodeError as exc:
        msg = f"Cannot read {path}: not valid UTF-8 (byte {exc.start})"
        raise FileReadFailure(msg) from exc
    except OSError as exc:
        msg = f"Failed to read {path}: {exc.strerror or exc}"
        raise FileReadFailure(msg) from exc


def write_document(path: Path, text: str) -> None:
    """Overwrite an existing note.

    Raises:
        FileWriteFailure: If the file cannot be written.
    """
    try:
        with path.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        msg = f"Failed to write {path}: {exc.strerror or exc}"
        raise FileWriteFailure(msg) from exc
    logger.debug("Wrote %s (%d chars)", path, len(text))


def create_document(path: Path, text: str) -> None:
    """Create a new note, including missing parent directories.

    Raises:
        FileCreationFailure: If the file exists or cannot be created.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("x", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except FileExistsError as exc:
        msg = f"Cannot create {path}: file already exists"
        raise FileCreationFailure(msg) from exc
    except OSError as exc:
        msg = f"Failed to create {path}: {exc.strerror or exc}"
        raise FileCreationFailure(msg) from exc
    logger.debug("Created %s", path)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def find_markdown_files(root: Path) -> list[Path]:
    """Discover all Markdown notes under *root*, sorted.

    Skips ``.git/``, ``.obsidian/``, ``.trash/`` and ``node_modules/``.
    A file *root* is returned as-is when it is Markdown.
    """
    if root.is_file():
        return [root] if root.suffix.lower() in MARKDOWN_SUFFIXES else []
    if not root.exists():
        return []

    results: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if any(part in _SKIP_DIRS for part in path.relative_to(root).parts):
            continue
        if path.suffix.lower() in MARKDOWN_SUFFIXES:
            results.append(path)
    return sorted(results)
