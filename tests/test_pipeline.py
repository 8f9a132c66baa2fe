"""Tests for the publish pipeline driven end to end with in-memory collaborators."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from google.auth.exceptions import TransportError
from helpers import HEADER, FakeGenerator, FakeGit, FakeQueue, post_html

from sheetpress.config import RunContext
from sheetpress.errors import GitError, QueueError
from sheetpress.pipeline import PipelineResult, Stage, resolve_status, run_pipeline
from sheetpress.pipeline.publish import commit_message
from sheetpress.tasks import TASKS_FILE, SheetsTaskQueue, Task, TaskStatus, build_batch


def _rows(*specs: tuple[str, str, str]) -> list[list[str]]:
    """(id, slug, publish_date) triples as READY blog rows under the header."""
    rows = [list(HEADER)]
    for id_, slug, publish_date in specs:
        rows.append(
            [id_, "blog", slug, slug.title(), "kw", "kw2", publish_date, "READY"]
        )
    return rows


def _run(ctx: RunContext, queue, generator, git) -> PipelineResult:
    return run_pipeline(ctx, queue=queue, generator=generator, git=git)


@pytest.fixture
def two_tasks() -> FakeQueue:
    return FakeQueue(_rows(("t1", "essay-tips", "2026-01-15"), ("t2", "never-made", "2026-01-10")))


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestSuccessfulRun:
    def test_end_to_end(self, ctx: RunContext, site_root: Path, two_tasks: FakeQueue) -> None:
        generator = FakeGenerator(
            site_root, {"essay-tips": post_html("Essay Tips", published="2026-01-15")}
        )
        git = FakeGit()

        result = _run(ctx, two_tasks, generator, git)

        assert result.stage == Stage.DONE
        assert result.exit_code == 0
        assert generator.checked and generator.calls == 1
        assert git.pulled

        batch = json.loads((site_root / TASKS_FILE).read_text(encoding="utf-8"))
        assert [t["slug"] for t in batch["tasks"]] == ["essay-tips", "never-made"]

        home = (site_root / "index.html").read_text(encoding="utf-8")
        assert "/blog/essay-tips/" in home
        assert result.sync is not None and result.sync.items == 1

        assert git.added
        assert git.commits[0].startswith("seo: publish 2 page(s) - 2026-01-15")
        assert git.pushes == [("origin", "main")]
        assert result.committed and result.pushed

        assert two_tasks.written == {"Queue!H2": "PUBLISHED", "Queue!H3": "ERROR"}
        assert result.statuses == {"t1": TaskStatus.PUBLISHED, "t2": TaskStatus.ERROR}

    def test_nothing_due_exits_cleanly(self, ctx: RunContext, site_root: Path) -> None:
        queue = FakeQueue(_rows(("t1", "later", "2026-03-01")))
        generator = FakeGenerator(site_root)
        git = FakeGit()

        result = _run(ctx, queue, generator, git)

        assert result.stage == Stage.DONE
        assert result.exit_code == 0
        assert result.batch is None
        assert generator.calls == 0
        assert queue.writes == []
        assert git.commits == []
        assert not (site_root / TASKS_FILE).exists()

    def test_no_changes_skips_commit(self, ctx: RunContext, site_root: Path) -> None:
        queue = FakeQueue(_rows(("t1", "essay-tips", "2026-01-15")))
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")})
        git = FakeGit(changes="")

        result = _run(ctx, queue, generator, git)

        assert result.committed is False
        assert git.commits == []
        assert queue.written == {"Queue!H2": "PUBLISHED"}


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


class TestPreconditions:
    def test_dirty_tree_aborts_before_queue(self, ctx: RunContext, site_root: Path) -> None:
        queue = FakeQueue(_rows(("t1", "a", "2026-01-15")))
        generator = FakeGenerator(site_root)

        result = _run(ctx, queue, generator, FakeGit(dirty="?? stray.txt"))

        assert result.stage == Stage.ABORTED
        assert result.failed_stage == Stage.CLEAN_CHECK
        assert "not clean" in result.failure
        assert result.exit_code == 1
        assert generator.calls == 0
        assert queue.writes == []
        assert not (site_root / TASKS_FILE).exists()

    def test_wrong_branch_aborts(self, ctx: RunContext, site_root: Path) -> None:
        result = _run(ctx, FakeQueue(), FakeGenerator(site_root), FakeGit(branch="feature"))

        assert result.failed_stage == Stage.CLEAN_CHECK
        assert "feature" in result.failure

    def test_schema_error_aborts(self, ctx: RunContext, site_root: Path) -> None:
        queue = FakeQueue([HEADER[:-1], ["t1", "blog", "a", "A", "k", "k2", "2026-01-15"]])

        result = _run(ctx, queue, FakeGenerator(site_root), FakeGit())

        assert result.stage == Stage.ABORTED
        assert result.failed_stage == Stage.FETCH_QUEUE
        assert "status" in result.failure

    def test_pull_failure_is_a_warning(self, ctx: RunContext, site_root: Path) -> None:
        class NoRemoteGit(FakeGit):
            def pull_rebase(self) -> None:
                raise GitError(["pull", "--rebase"], 1, "no tracking branch")

        queue = FakeQueue(_rows(("t1", "later", "2026-03-01")))

        result = _run(ctx, queue, FakeGenerator(site_root), NoRemoteGit())

        assert result.exit_code == 0
        assert any("Could not pull" in w.message for w in result.report.warnings)


# ---------------------------------------------------------------------------
# Failures after the batch exists
# ---------------------------------------------------------------------------


class TestGenerationFailures:
    def test_transient_failures_are_retried(
        self, ctx: RunContext, site_root: Path, two_tasks: FakeQueue
    ) -> None:
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")}, failures=2)

        result = _run(ctx, two_tasks, generator, FakeGit())

        assert generator.calls == 3
        assert result.exit_code == 0

    def test_exhausted_generation_still_reports_status(
        self, ctx: RunContext, site_root: Path, two_tasks: FakeQueue
    ) -> None:
        generator = FakeGenerator(site_root, failures=10)
        git = FakeGit()

        result = _run(ctx, two_tasks, generator, git)

        assert generator.calls == ctx.config.retry.max_attempts
        assert result.failed_stage == Stage.GENERATE
        assert result.stage == Stage.REPORT_STATUS
        assert result.exit_code == 1
        assert git.commits == []
        assert two_tasks.written == {"Queue!H2": "ERROR", "Queue!H3": "ERROR"}

    def test_non_retryable_failure_runs_once(
        self, ctx: RunContext, site_root: Path, two_tasks: FakeQueue
    ) -> None:
        generator = FakeGenerator(site_root, failures=10, retryable=False)

        result = _run(ctx, two_tasks, generator, FakeGit())

        assert generator.calls == 1
        assert result.failed_stage == Stage.GENERATE


class TestDegradedStages:
    def test_rollup_failure_is_a_warning(
        self, ctx: RunContext, site_root: Path, two_tasks: FakeQueue
    ) -> None:
        (site_root / "index.html").write_text("<html>no markers</html>", encoding="utf-8")
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")})
        git = FakeGit()

        result = _run(ctx, two_tasks, generator, git)

        assert result.exit_code == 0
        assert result.sync is None
        assert any(w.stage == Stage.SYNC_ROLLUPS for w in result.report.warnings)
        assert git.commits
        assert two_tasks.written["Queue!H2"] == "PUBLISHED"

    def test_push_failure_is_a_warning(
        self, ctx: RunContext, site_root: Path, two_tasks: FakeQueue
    ) -> None:
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")})

        result = _run(ctx, two_tasks, generator, FakeGit(push_fails=True))

        assert result.committed is True
        assert result.pushed is False
        assert result.exit_code == 0
        assert any("push manually" in w.message for w in result.report.warnings)

    def test_status_write_failure_is_recorded(self, ctx: RunContext, site_root: Path) -> None:
        queue = FakeQueue(
            _rows(("t1", "essay-tips", "2026-01-15")),
            write_error=QueueError("sheet write rejected", retryable=False),
        )
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")})

        result = _run(ctx, queue, generator, FakeGit())

        assert result.committed is True
        assert result.report.has_errors
        assert result.report.errors[0].stage == Stage.REPORT_STATUS
        assert result.exit_code == 0

    def test_unexpected_status_write_error_still_returns_result(
        self, ctx: RunContext, site_root: Path
    ) -> None:
        queue = FakeQueue(
            _rows(("t1", "essay-tips", "2026-01-15")),
            write_error=RuntimeError("token refresh failed"),
        )
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")})

        result = _run(ctx, queue, generator, FakeGit())

        assert isinstance(result, PipelineResult)
        assert result.committed is True
        assert result.report.errors[0].stage == Stage.REPORT_STATUS
        assert "token refresh failed" in result.report.errors[0].message
        assert result.exit_code == 0

    def test_sheets_transport_failure_on_write_is_recorded(
        self, ctx: RunContext, site_root: Path
    ) -> None:
        service = MagicMock()
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.return_value = {
            "values": _rows(("t1", "essay-tips", "2026-01-15"))
        }
        values.batchUpdate.return_value.execute.side_effect = TransportError(
            "token refresh failed"
        )
        queue = SheetsTaskQueue(
            "sheet-123",
            "Queue",
            Path("creds.json"),
            retry_policy=ctx.config.retry,
            service=service,
        )
        generator = FakeGenerator(site_root, {"essay-tips": post_html("Essay Tips")})

        result = _run(ctx, queue, generator, FakeGit())

        assert result.committed is True
        assert result.report.errors[0].stage == Stage.REPORT_STATUS
        assert values.batchUpdate.return_value.execute.call_count == ctx.config.retry.max_attempts

    def test_non_utf8_page_is_still_committed(self, ctx: RunContext, site_root: Path) -> None:
        queue = FakeQueue(_rows(("t1", "essay-tips", "2026-01-15")))
        generator = FakeGenerator(
            site_root, {"essay-tips": post_html("Café Essays").encode("latin-1")}
        )
        git = FakeGit()

        result = _run(ctx, queue, generator, git)

        assert result.exit_code == 0
        assert result.sync is not None
        assert not result.report.warnings
        assert git.commits
        assert queue.written == {"Queue!H2": "PUBLISHED"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_commit_message_lists_pages(self) -> None:
        batch = build_batch(
            [
                Task(row_number=2, type="blog", slug="a"),
                Task(row_number=3, type="landing", slug="b"),
            ],
            "2026-01-15",
        )
        assert commit_message(batch) == (
            "seo: publish 2 page(s) - 2026-01-15\n\nPages generated:\n"
            "- [blog] a\n- [landing] b"
        )

    def test_resolve_status_checks_disk(self, tmp_path: Path) -> None:
        task = Task(row_number=2, type="landing-page", slug="help")
        assert resolve_status(task, tmp_path) == TaskStatus.ERROR

        page = tmp_path / "landing" / "help" / "index.html"
        page.parent.mkdir(parents=True)
        page.write_text("<html></html>")
        assert resolve_status(task, tmp_path) == TaskStatus.PUBLISHED

    def test_unknown_type_is_error(self, tmp_path: Path) -> None:
        assert resolve_status(Task(row_number=2, type="video", slug="x"), tmp_path) == (
            TaskStatus.ERROR
        )
