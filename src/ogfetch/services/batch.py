"""Directory scan and sequential batch processing.

Documents are processed strictly one at a time through
:meth:`FetchService.process_document`, with a pause between them.
Cancellation is cooperative: the token is checked between documents and
interrupts the pause, but never an in-flight fetch.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from ogfetch.config.models import WritePolicy
from ogfetch.domain.frontmatter import parse_frontmatter
from ogfetch.errors import OgFetchError
from ogfetch.services.base import BaseService
from ogfetch.services.fetch import FetchService
from ogfetch.services.result import ServiceError, ServiceResult
from ogfetch.services.telemetry import traced

log = structlog.get_logger(__name__)


class CancelToken:
    """Cooperative cancellation flag shared with a running batch."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if cancelled meanwhile."""
        if seconds <= 0:
            return self.cancelled
        return self._event.wait(seconds)


@dataclass(frozen=True)
class FileInfo:
    """A note that carries a URL, with its metadata completeness."""

    path: Path
    name: str
    url: str
    missing_fields: tuple[str, ...]

    @property
    def has_metadata(self) -> bool:
        return not self.missing_fields

    def to_dict(self, root: Path | None = None) -> dict[str, Any]:
        path = self.path
        if root is not None and path.is_relative_to(root):
            path = path.relative_to(root)
        return {
            "path": str(path),
            "name": self.name,
            "url": self.url,
            "missing_fields": list(self.missing_fields),
            "has_metadata": self.has_metadata,
        }


ProgressCallback = Callable[[int, int, ServiceResult], None]


class BatchService(BaseService):
    """Finds eligible notes and refreshes them one after another."""

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def find_eligible(
        self,
        directory: Path | str | None = None,
        *,
        include_complete: bool = False,
    ) -> list[FileInfo]:
        """Notes under *directory* whose frontmatter holds a string URL.

        Complete notes are left out unless *include_complete* is set.
        """
        ws = self._workspace
        root = ws.resolve(directory) if directory is not None else ws.root
        fields = ws.fields
        eligible: list[FileInfo] = []
        for path in ws.notes(root):
            try:
                text = ws.read(path)
            except OgFetchError as exc:
                log.warning("scan.unreadable", path=str(path), error=str(exc))
                continue
            block = parse_frontmatter(text)
            if block is None:
                continue
            url = fields.url_of(block)
            if url is None:
                continue
            info = FileInfo(
                path=path,
                name=path.name,
                url=url,
                missing_fields=tuple(str(f) for f in fields.missing(block)),
            )
            if info.has_metadata and not include_complete:
                continue
            eligible.append(info)
        return eligible

    @traced
    def scan(
        self,
        directory: Path | str | None = None,
        *,
        include_complete: bool | None = None,
    ) -> ServiceResult:
        """List eligible notes. Defaults to ``[batch] skip_existing_data``."""
        if include_complete is None:
            include_complete = not self._workspace.settings.batch.skip_existing_data
        root = self._workspace.root
        files = self.find_eligible(directory, include_complete=include_complete)
        return ServiceResult(
            ok=True,
            op="scan",
            data={
                "directory": str(directory or "."),
                "count": len(files),
                "complete": sum(1 for f in files if f.has_metadata),
                "files": [f.to_dict(root) for f in files],
            },
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    @traced
    def run(
        self,
        paths: Iterable[Path | str] | None = None,
        *,
        directory: Path | str | None = None,
        include_complete: bool | None = None,
        policy: WritePolicy | None = None,
        delay: float | None = None,
        limit: int | None = None,
        cancel: CancelToken | None = None,
        on_progress: ProgressCallback | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Process notes sequentially.

        Args:
            paths: Explicit notes to process. When omitted, the eligible
                notes under *directory* are used.
            directory: Directory to scan when *paths* is omitted.
            include_complete: Also process notes whose metadata is complete.
            policy: Write policy for every document.
            delay: Seconds to pause between documents. Defaults to the
                configured batch delay.
            limit: Process at most this many documents.
            cancel: Token checked between documents.
            on_progress: Called after each document with
                ``(index, total, result)``.
        """
        op = "batch"
        ws = self._workspace
        settings = ws.settings
        policy = policy or settings.policy
        delay = settings.batch_delay_seconds if delay is None else delay
        cancel = cancel or CancelToken()
        if include_complete is None:
            include_complete = not settings.batch.skip_existing_data

        if paths is None:
            found = self.find_eligible(directory, include_complete=include_complete)
            targets = [f.path for f in found]
        else:
            targets = [ws.resolve(p) for p in paths]
        if limit is not None:
            targets = targets[:limit]

        fetch = FetchService(ws)
        results: list[dict[str, Any]] = []
        success_count = 0
        error_count = 0
        cancelled = False
        total = len(targets)

        for index, target in enumerate(targets, start=1):
            if cancel.cancelled:
                cancelled = True
                break
            result = fetch.process_document(target, policy=policy, now=now)
            entry: dict[str, Any] = {"path": str(target), "ok": result.ok}
            if result.ok:
                success_count += 1
                entry["written"] = result.data.get("written", False)
            else:
                error_count += 1
                entry["error"] = result.error.message if result.error else None
                entry["code"] = result.error.code if result.error else None
            results.append(entry)
            log.info("batch.document_done", index=index, total=total, **entry)
            if on_progress is not None:
                on_progress(index, total, result)

            if index < total and cancel.wait(delay):
                cancelled = True
                break

        if cancelled:
            log.info("batch.cancelled", processed=len(results), total=total)

        data = {
            "total": total,
            "processed": len(results),
            "success_count": success_count,
            "error_count": error_count,
            "cancelled": cancelled,
            "results": results,
        }
        warnings = [f"{r['path']}: {r['error']}" for r in results if not r["ok"]]
        if total and error_count == total:
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                warnings=warnings,
                error=ServiceError(
                    code="BATCH_FAILED",
                    message=f"All {total} documents failed",
                ),
            )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
