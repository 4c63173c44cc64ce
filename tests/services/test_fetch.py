"""Tests for the single-document fetch pipeline."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ogfetch.config.models import WritePolicy
from ogfetch.config.settings import OgSettings
from ogfetch.domain.frontmatter import body_of, parse_frontmatter
from ogfetch.infrastructure.workspace import Workspace
from ogfetch.services.fetch import FetchService

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
STAMP = "2024-05-01T12:00:00.000Z"

Note = Callable[[str, str], Path]


class TestProcessDocument:
    def test_fills_missing_fields(self, workspace: Workspace, note: Note) -> None:
        path = note("a.md", "---\nurl: https://a.test\ntags:\n  - web\n---\n# Body\n")
        result = FetchService(workspace).process_document("a.md", now=NOW)

        assert result.ok
        assert result.op == "fetch"
        assert result.data["written"] is True
        assert result.data["cached"] is False
        assert result.data["states"] == [
            "idle",
            "fetching",
            "normalizing",
            "planning",
            "serializing",
            "done",
        ]
        assert set(result.data["fields_changed"]) == {
            "og_title",
            "og_description",
            "og_image",
            "og_favicon",
            "og_last_fetch",
        }
        text = path.read_text()
        assert parse_frontmatter(text) == {
            "url": "https://a.test",
            "tags": ["web"],
            "og_title": "A",
            "og_description": "B",
            "og_image": "https://a.test/i.png",
            "og_favicon": "https://a.test/favicon.ico",
            "og_last_fetch": STAMP,
        }
        assert body_of(text) == "# Body\n"

    def test_request_targets_note_url(
        self, workspace: Workspace, note: Note, provider: object
    ) -> None:
        note("a.md", "---\nurl: https://a.test/page\n---\n")
        FetchService(workspace).process_document("a.md", now=NOW)
        (request,) = provider.fetches  # type: ignore[attr-defined]
        assert request.url.params["app_id"] == "test-key"

    def test_second_run_unchanged(self, workspace: Workspace, note: Note) -> None:
        path = note("a.md", "---\nurl: https://a.test\n---\nbody")
        service = FetchService(workspace)
        service.process_document("a.md", now=NOW)
        first = path.read_bytes()

        result = service.process_document("a.md", now=NOW)
        assert result.ok
        assert result.data["written"] is False
        assert result.data["cached"] is True
        assert result.data["fields_changed"] == []
        assert path.read_bytes() == first

    def test_explicit_url_overrides_field(
        self, workspace: Workspace, note: Note, provider: object
    ) -> None:
        note("a.md", "no frontmatter here\n")
        result = FetchService(workspace).process_document("a.md", url="https://b.test", now=NOW)
        assert result.ok
        assert result.data["url"] == "https://b.test"
        (request,) = provider.fetches  # type: ignore[attr-defined]
        assert "b.test" in str(request.url)

    def test_synthesizes_block_for_plain_note(self, workspace: Workspace, note: Note) -> None:
        path = note("a.md", "plain body\n")
        FetchService(workspace).process_document("a.md", url="https://a.test", now=NOW)
        text = path.read_text()
        assert text.startswith("---\n")
        assert body_of(text) == "plain body\n"
        assert parse_frontmatter(text)["url"] == "https://a.test"  # type: ignore[index]

    def test_create_new_note(self, workspace: Workspace, tmp_path: Path) -> None:
        result = FetchService(workspace).process_document(
            "inbox/new.md", url="https://a.test", create=True, now=NOW
        )
        assert result.ok
        assert result.data["created"] is True
        block = parse_frontmatter((tmp_path / "inbox" / "new.md").read_text())
        assert block is not None
        assert block["og_title"] == "A"

    def test_overwrite_policy(self, workspace: Workspace, note: Note) -> None:
        path = note("a.md", "---\nurl: https://a.test\nog_title: Old\n---\n")
        policy = WritePolicy(overwrite_existing=True, update_fetch_date=False)
        FetchService(workspace).process_document("a.md", policy=policy, now=NOW)
        block = parse_frontmatter(path.read_text()) or {}
        assert block["og_title"] == "A"
        assert "og_last_fetch" not in block


class TestPreconditions:
    def test_missing_document(self, workspace: Workspace, provider: object) -> None:
        result = FetchService(workspace).process_document("ghost.md")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NO_ACTIVE_FILE"
        assert result.data["states"] == ["idle", "failed", "done"]
        assert provider.requests == []  # type: ignore[attr-defined]

    def test_undecodable_document(
        self, workspace: Workspace, tmp_path: Path, provider: object
    ) -> None:
        path = tmp_path / "bad.md"
        raw = b"---\nurl: https://a.test\n---\n\xff body"
        path.write_bytes(raw)
        result = FetchService(workspace).process_document("bad.md")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "FILE_READ_FAILURE"
        assert result.data["states"] == ["idle", "failed", "done"]
        assert provider.requests == []  # type: ignore[attr-defined]
        assert path.read_bytes() == raw

    def test_no_url(self, workspace: Workspace, note: Note) -> None:
        path = note("a.md", "---\ntitle: x\n---\n")
        result = FetchService(workspace).process_document("a.md")
        assert result.error is not None
        assert result.error.code == "NO_URL_FOUND"
        assert path.read_text() == "---\ntitle: x\n---\n"

    def test_invalid_policy_rejected_before_io(
        self, workspace: Workspace, note: Note, provider: object
    ) -> None:
        note("a.md", "---\nurl: https://a.test\n---\n")
        policy = WritePolicy(create_new_properties=False, overwrite_existing=False)
        result = FetchService(workspace).process_document("a.md", policy=policy)
        assert result.error is not None
        assert result.error.code == "CONFIGURATION_ERROR"
        assert provider.requests == []  # type: ignore[attr-defined]

    def test_create_without_url(self, workspace: Workspace) -> None:
        result = FetchService(workspace).process_document("new.md", create=True)
        assert result.error is not None
        assert result.error.code == "NO_URL_FOUND"


class TestFetchFailure:
    def test_error_written_to_frontmatter(
        self, workspace: Workspace, note: Note, provider: object, sleeps: list[float]
    ) -> None:
        provider.responses = [500]  # type: ignore[attr-defined]
        path = note("a.md", "---\nurl: https://a.test\nog_title: Keep\n---\nbody")

        result = FetchService(workspace).process_document("a.md", now=NOW)

        assert not result.ok
        assert result.error is not None
        assert result.error.code == "FETCH_FAILURE"
        assert result.data["states"] == ["idle", "fetching", "failed", "error_writing", "done"]
        assert len(provider.fetches) == 3  # type: ignore[attr-defined]
        assert len(sleeps) == 2
        block = parse_frontmatter(path.read_text()) or {}
        assert block["og_title"] == "Keep"
        assert block["og_error"] == "Failed to fetch OpenGraph data after 3 attempts"
        assert block["og_error_code"] == "FETCH_FAILURE"
        assert block["og_error_timestamp"] == STAMP
        assert body_of(path.read_text()) == "body"

    def test_error_not_written_when_disabled(
        self, workspace: Workspace, note: Note, provider: object
    ) -> None:
        provider.responses = [500]  # type: ignore[attr-defined]
        original = "---\nurl: https://a.test\n---\nbody"
        path = note("a.md", original)
        result = FetchService(workspace).process_document(
            "a.md", policy=WritePolicy(write_errors=False)
        )
        assert result.data["states"] == ["idle", "fetching", "failed", "done"]
        assert path.read_text() == original

    def test_success_clears_previous_error(
        self, workspace: Workspace, note: Note, provider: object
    ) -> None:
        recovered = {"openGraph": {"title": "Recovered"}}
        provider.responses = [500, 500, 500, recovered]  # type: ignore[attr-defined]
        path = note("a.md", "---\nurl: https://a.test\n---\n")
        service = FetchService(workspace)
        assert not service.process_document("a.md", now=NOW).ok
        assert "og_error" in (parse_frontmatter(path.read_text()) or {})

        assert service.process_document("a.md", now=NOW).ok
        block = parse_frontmatter(path.read_text()) or {}
        assert block["og_title"] == "Recovered"
        assert not {"og_error", "og_error_code", "og_error_timestamp"} & block.keys()

    def test_missing_key_recorded(
        self, settings: OgSettings, note: Note, provider: object
    ) -> None:
        workspace = Workspace(
            settings.with_api(api_key=""),
            client=provider.client(),  # type: ignore[attr-defined]
        )
        path = note("a.md", "---\nurl: https://a.test\n---\n")
        result = FetchService(workspace).process_document("a.md", now=NOW)
        assert result.error is not None
        assert result.error.code == "MISSING_CREDENTIAL"
        assert provider.requests == []  # type: ignore[attr-defined]
        assert (parse_frontmatter(path.read_text()) or {})["og_error_code"] == "MISSING_CREDENTIAL"

    def test_new_note_not_created_on_failure(
        self, workspace: Workspace, provider: object, tmp_path: Path
    ) -> None:
        provider.responses = [500]  # type: ignore[attr-defined]
        result = FetchService(workspace).process_document(
            "new.md", url="https://a.test", create=True
        )
        assert not result.ok
        assert not (tmp_path / "new.md").exists()


class TestShowAndScreenshot:
    def test_show(self, workspace: Workspace, note: Note) -> None:
        note("a.md", "---\nurl: https://a.test\nog_title: T\n---\n")
        result = FetchService(workspace).show("a.md")
        assert result.ok
        assert result.data["frontmatter"] == {"url": "https://a.test", "og_title": "T"}
        assert result.data["url"] == "https://a.test"
        assert result.data["missing_fields"] == ["description", "image"]

    def test_show_without_frontmatter(self, workspace: Workspace, note: Note) -> None:
        note("a.md", "plain\n")
        result = FetchService(workspace).show("a.md")
        assert result.data["has_frontmatter"] is False
        assert result.data["frontmatter"] == {}

    def test_show_missing(self, workspace: Workspace) -> None:
        result = FetchService(workspace).show("nope.md")
        assert result.error is not None
        assert result.error.code == "NO_ACTIVE_FILE"

    def test_show_undecodable(self, workspace: Workspace, tmp_path: Path) -> None:
        (tmp_path / "bad.md").write_bytes(b"\xff")
        result = FetchService(workspace).show("bad.md")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "FILE_READ_FAILURE"

    def test_screenshot(self, workspace: Workspace) -> None:
        result = FetchService(workspace).screenshot("https://a.test")
        assert result.ok
        assert result.data["screenshot_url"] == "https://cdn.test/shot.png"
