"""Publish pipeline: queue rows → generated pages → rollups → commit → status.

Stages run strictly in order::

    CLEAN_CHECK → FETCH_QUEUE → BUILD_BATCH → GENERATE → SYNC_ROLLUPS
      → PUBLISH → REPORT_STATUS → DONE

Any failure before the batch file is written aborts the run with no side
effects. Once the batch is on disk, status write-back runs in a ``finally``
scope no matter which later stage failed, and its own failure is recorded
separately from the upstream outcome.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from pydantic import BaseModel, Field

from sheetpress.config import RunContext
from sheetpress.errors import (
    DirtyTreeError,
    GenerationError,
    GitError,
    PipelineReport,
    SheetpressError,
    WrongBranchError,
)
from sheetpress.generator import Generator
from sheetpress.git import GitRepo
from sheetpress.pipeline.status import report_statuses
from sheetpress.retry import call_with_retry
from sheetpress.site.models import SyncResult
from sheetpress.site.rollups import synchronize
from sheetpress.tasks.models import TaskBatch, TaskStatus
from sheetpress.tasks.services import (
    QueueHeader,
    build_batch,
    fetch_actionable_tasks,
    write_task_batch,
)
from sheetpress.tasks.sheets import TaskQueue

logger = logging.getLogger(__name__)


class Stage(StrEnum):
    CLEAN_CHECK = "clean_check"
    FETCH_QUEUE = "fetch_queue"
    BUILD_BATCH = "build_batch"
    GENERATE = "generate"
    SYNC_ROLLUPS = "sync_rollups"
    PUBLISH = "publish"
    REPORT_STATUS = "report_status"
    DONE = "done"
    ABORTED = "aborted"


class PipelineResult(BaseModel):
    """Tagged outcome of one run."""

    stage: Stage = Stage.CLEAN_CHECK
    failed_stage: Stage | None = None
    failure: str = ""
    batch: TaskBatch | None = None
    generation_output: str = ""
    sync: SyncResult | None = None
    changes: str = ""
    committed: bool = False
    pushed: bool = False
    statuses: dict[str, TaskStatus] = Field(default_factory=dict)
    report: PipelineReport = Field(default_factory=PipelineReport)

    @property
    def failed(self) -> bool:
        return self.failed_stage is not None

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def advance(self, stage: Stage) -> None:
        logger.debug("stage: %s -> %s", self.stage, stage)
        self.stage = stage

    def fail(self, exc: BaseException) -> None:
        self.failed_stage = self.stage
        self.failure = str(exc)
        self.report.add_error(self.stage.value, self.failure)


def commit_message(batch: TaskBatch) -> str:
    lines = [f"seo: publish {len(batch)} page(s) - {batch.today}", "", "Pages generated:"]
    lines.extend(f"- [{t.type}] {t.slug}" for t in batch.tasks)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def check_clean(git: GitRepo, branch: str) -> None:
    """Raise unless the tree is clean and on the publishing branch."""
    logger.info("Checking git status...")
    dirty = git.status_porcelain()
    if dirty:
        raise DirtyTreeError(dirty)
    current = git.current_branch()
    if current != branch:
        raise WrongBranchError(current, branch)


def _pull(git: GitRepo, report: PipelineReport) -> None:
    logger.info("Pulling latest changes...")
    try:
        git.pull_rebase()
    except GitError as exc:
        report.add_warning(
            Stage.CLEAN_CHECK.value, f"Could not pull (no remote or new repo?): {exc}"
        )


def _generate(ctx: RunContext, batch: TaskBatch, generator: Generator) -> str:
    result = call_with_retry(
        generator.generate,
        batch,
        policy=ctx.config.retry,
        label="generation",
        retry_on=(GenerationError,),
    )
    return result.output


def _sync(ctx: RunContext, git: GitRepo, report: PipelineReport) -> SyncResult | None:
    try:
        return synchronize(ctx, git=git)
    except Exception as exc:
        report.add_warning(Stage.SYNC_ROLLUPS.value, f"Rollup sync failed: {exc}")
        return None


def _publish(ctx: RunContext, batch: TaskBatch, git: GitRepo, result: PipelineResult) -> None:
    logger.info("Checking for changes...")
    result.changes = git.status_porcelain()
    if not result.changes:
        logger.info("No files were changed. Nothing to commit.")
        return

    logger.info("Changes detected:\n%s", result.changes)
    git.add_all()
    git.commit(commit_message(batch))
    result.committed = True

    remote, branch = ctx.config.git.remote, ctx.config.git.branch
    logger.info("Pushing to %s %s...", remote, branch)
    try:
        git.push(remote, branch)
        result.pushed = True
    except GitError as exc:
        result.report.add_warning(
            Stage.PUBLISH.value, f"Could not push; push manually. ({exc})"
        )


def _report_status(
    ctx: RunContext,
    batch: TaskBatch,
    queue: TaskQueue,
    header: QueueHeader,
    result: PipelineResult,
) -> None:
    try:
        result.statuses = report_statuses(
            batch,
            queue,
            root=ctx.root,
            status_column=header.status_column,
            sheet_name=ctx.config.queue.sheet_name,
        )
    except Exception as exc:
        result.report.add_error(Stage.REPORT_STATUS.value, f"Status write-back failed: {exc}")


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def run_pipeline(
    ctx: RunContext,
    *,
    queue: TaskQueue,
    generator: Generator,
    git: GitRepo,
) -> PipelineResult:
    """Run one publish cycle against the working tree at ``ctx.root``.

    Never raises :class:`SheetpressError`; the outcome, including which stage
    failed, is carried by the returned result.
    """
    result = PipelineResult()
    logger.info("Starting publish run for %s in %s", ctx.today_iso, ctx.root)

    try:
        generator.check_environment()
        check_clean(git, ctx.config.git.branch)
        _pull(git, result.report)

        result.advance(Stage.FETCH_QUEUE)
        header, tasks = fetch_actionable_tasks(queue, ctx.today_iso)

        result.advance(Stage.BUILD_BATCH)
        if not tasks:
            logger.info("No READY tasks due by %s. Exiting.", ctx.today_iso)
            result.advance(Stage.DONE)
            return result

        batch = build_batch(tasks, ctx.today_iso)
        for task in batch.tasks:
            logger.info("  - [%s] %s: %s", task.type, task.slug, task.title)
        write_task_batch(batch, ctx.root)
        result.batch = batch
    except (SheetpressError, OSError) as exc:
        result.fail(exc)
        result.advance(Stage.ABORTED)
        return result

    try:
        result.advance(Stage.GENERATE)
        result.generation_output = _generate(ctx, batch, generator)

        result.advance(Stage.SYNC_ROLLUPS)
        result.sync = _sync(ctx, git, result.report)

        result.advance(Stage.PUBLISH)
        _publish(ctx, batch, git, result)
    except SheetpressError as exc:
        result.fail(exc)
    finally:
        result.advance(Stage.REPORT_STATUS)
        # header is set whenever a batch exists
        _report_status(ctx, batch, queue, header, result)  # type: ignore[arg-type]

    if not result.failed:
        result.advance(Stage.DONE)
    logger.info("Processed %d task(s) for %s", len(batch), ctx.today_iso)
    return result
