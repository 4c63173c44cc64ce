"""Single-document metadata refresh.

Pipeline: READ → FETCH → NORMALIZE → PLAN → SERIALIZE → WRITE
Each run walks the :class:`~ogfetch.domain.lifecycle.DocumentRun` state
machine; the trail is returned in ``data["states"]``.

Fetch failures on an existing document are recorded in its frontmatter
(``og_error*``) when the policy allows it. Precondition failures never
touch the file.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from ogfetch.config.models import WritePolicy
from ogfetch.domain.frontmatter import parse_frontmatter, update_frontmatter
from ogfetch.domain.lifecycle import DocumentRun, RunState
from ogfetch.domain.planner import changed_keys, plan, plan_error, validate_policy
from ogfetch.errors import NoActiveDocument, NoUrlFound, OgFetchError
from ogfetch.services.base import BaseService
from ogfetch.services.result import ServiceError, ServiceResult
from ogfetch.services.telemetry import annotate, trace_span, traced

log = structlog.get_logger(__name__)


class FetchService(BaseService):
    """Fetches OpenGraph metadata for one note and writes it back."""

    @traced
    def process_document(
        self,
        path: Path | str,
        *,
        url: str | None = None,
        policy: WritePolicy | None = None,
        create: bool = False,
        refresh: bool = False,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Refresh the metadata of the note at *path*.

        Args:
            path: Note path, relative to the workspace root or absolute.
            url: URL to fetch. Defaults to the note's own url field.
            policy: Write policy. Defaults to the configured policy.
            create: Create the note when it does not exist (needs *url*).
            refresh: Bypass the cache for this URL.
            now: Timestamp for ``og_last_fetch`` / ``og_error_timestamp``.
        """
        op = "fetch"
        ws = self._workspace
        policy = policy or ws.settings.policy
        fields = ws.fields
        target = ws.resolve(path)
        run = DocumentRun()
        data: dict[str, Any] = {"path": str(target), "url": url}

        def fail(exc: OgFetchError, warnings: list[str] | None = None) -> ServiceResult:
            if not run.finished:
                run.advance(RunState.DONE)
            data["states"] = run.trail()
            log.info("fetch.failed", path=str(target), code=exc.code, error=exc.message)
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                warnings=warnings or [],
                error=ServiceError.from_exception(exc),
            )

        # ── READ ─────────────────────────────────────────────
        try:
            validate_policy(policy)
            exists = target.is_file()
            if exists:
                text = ws.read(target)
            elif create:
                text = ""
            else:
                raise NoActiveDocument(f"No document found at {target}")

            block = parse_frontmatter(text) or {}
            url = url or fields.url_of(block)
            if not url:
                raise NoUrlFound(f"No URL found in {target}")
        except OgFetchError as exc:
            run.advance(RunState.FAILED)
            return fail(exc)
        data["url"] = url
        annotate("url", url)

        # ── FETCH / NORMALIZE ────────────────────────────────
        try:
            run.advance(RunState.FETCHING)
            with trace_span("fetch") as span:
                outcome = ws.fetcher.fetch(url, refresh=refresh)
                if span:
                    span.annotate("cached", outcome.cached)
            run.advance(RunState.NORMALIZING)
        except OgFetchError as exc:
            run.advance(RunState.FAILED)
            if not (exists and policy.write_errors):
                return fail(exc)
            return fail(exc, self._write_error(target, text, block, exc, policy, run, now))

        # ── PLAN ─────────────────────────────────────────────
        run.advance(RunState.PLANNING)
        with trace_span("plan") as span:
            updated = plan(block, outcome.record, policy, fields, now=now)
            changed = changed_keys(block, updated)
            if span:
                span.annotate("changed", len(changed))

        # ── SERIALIZE / WRITE ────────────────────────────────
        run.advance(RunState.SERIALIZING)
        new_text = update_frontmatter(text, updated)
        written = False
        try:
            with trace_span("write"):
                if not exists:
                    ws.create(target, new_text)
                    written = True
                elif new_text != text:
                    ws.write(target, new_text)
                    written = True
        except OgFetchError as exc:
            run.advance(RunState.FAILED)
            return fail(exc)
        run.advance(RunState.DONE)

        data.update(
            {
                "states": run.trail(),
                "fields_changed": changed,
                "written": written,
                "created": not exists,
                "cached": outcome.cached,
                "title": outcome.record.title,
            }
        )
        log.info("fetch.document_done", path=str(target), written=written, cached=outcome.cached)
        return ServiceResult(ok=True, op=op, data=data)

    def _write_error(
        self,
        target: Path,
        text: str,
        block: dict[str, Any],
        exc: OgFetchError,
        policy: WritePolicy,
        run: DocumentRun,
        now: datetime | None,
    ) -> list[str]:
        """Record *exc* in the note's frontmatter. Returns warnings."""
        run.advance(RunState.ERROR_WRITING)
        errored = plan_error(block, exc, policy, now=now)
        try:
            self._workspace.write(target, update_frontmatter(text, errored))
        except OgFetchError as write_exc:
            return [f"Could not record error in {target}: {write_exc.message}"]
        return []

    @traced
    def show(self, path: Path | str) -> ServiceResult:
        """Parsed frontmatter of a note plus its URL and missing fields."""
        op = "show"
        ws = self._workspace
        target = ws.resolve(path)
        try:
            text = ws.read(target)
        except OgFetchError as exc:
            return ServiceResult(ok=False, op=op, error=ServiceError.from_exception(exc))

        parsed = parse_frontmatter(text)
        block = parsed or {}
        fields = ws.fields
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(target),
                "has_frontmatter": parsed is not None,
                "frontmatter": block,
                "url": fields.url_of(block),
                "missing_fields": [str(f) for f in fields.missing(block)],
            },
        )

    @traced
    def screenshot(self, url: str) -> ServiceResult:
        """Request a screenshot of *url* from the provider."""
        op = "screenshot"
        try:
            shot = self._workspace.fetcher.screenshot(url)
        except OgFetchError as exc:
            return ServiceResult(
                ok=False, op=op, data={"url": url}, error=ServiceError.from_exception(exc)
            )
        return ServiceResult(ok=True, op=op, data={"url": url, "screenshot_url": shot})
