"""Error taxonomy and per-run report for the publishing pipeline.

Fatal errors abort a run before any side effect. Remote errors carry a
``retryable`` flag consulted by :mod:`sheetpress.retry`. Degraded failures
(rollups, push, status write-back) are collected in a :class:`PipelineReport`
instead of being raised.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SheetpressError(Exception):
    """Base error for everything raised by sheetpress."""

    retryable: bool = False


# ---------------------------------------------------------------------------
# Fatal / configuration
# ---------------------------------------------------------------------------


class ConfigError(SheetpressError):
    """Missing or invalid configuration (credentials, sheet id, site config)."""


class SchemaError(SheetpressError):
    """The task queue header row is missing a required column."""

    def __init__(self, column: str) -> None:
        super().__init__(f"Sheet missing required column: {column}")
        self.column = column


class PreconditionError(SheetpressError):
    """The working tree is not in a state a run may start from."""


class DirtyTreeError(PreconditionError):
    """The working tree has uncommitted changes."""

    def __init__(self, porcelain: str) -> None:
        super().__init__(
            "Working tree is not clean. Commit or stash your changes first.\n" + porcelain
        )
        self.porcelain = porcelain


class WrongBranchError(PreconditionError):
    """The checked-out branch is not the publishing branch."""

    def __init__(self, current: str, expected: str) -> None:
        super().__init__(f"On branch {current!r}, expected publishing branch {expected!r}")
        self.current = current
        self.expected = expected


# ---------------------------------------------------------------------------
# Transient / remote
# ---------------------------------------------------------------------------


class RemoteError(SheetpressError):
    """A call to an external collaborator failed."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class QueueError(RemoteError):
    """Reading from or writing to the task queue failed."""


class GenerationError(RemoteError):
    """The page generator subprocess failed."""


class GitError(RemoteError):
    """A git command exited non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        super().__init__(
            f"Command failed (exit {returncode}): git {' '.join(args)}\n{stderr[:500]}".rstrip(),
            retryable=False,
        )
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr


# ---------------------------------------------------------------------------
# Rollup synthesis
# ---------------------------------------------------------------------------


class NoContentError(SheetpressError):
    """No content items were discovered under the content root."""


class MarkerMissingError(SheetpressError):
    """A marker-delimited region could not be located in a document."""

    def __init__(self, marker: str, *, reason: str = "Missing marker") -> None:
        super().__init__(f"{reason}: {marker}")
        self.marker = marker


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------


class ReportEntry(BaseModel):
    """One recorded problem from a pipeline stage."""

    stage: str
    message: str


class PipelineReport(BaseModel):
    """Errors and warnings accumulated over one pipeline run."""

    errors: list[ReportEntry] = Field(default_factory=list)
    warnings: list[ReportEntry] = Field(default_factory=list)

    def add_error(self, stage: str, message: str) -> None:
        logger.error("[%s] %s", stage, message)
        self.errors.append(ReportEntry(stage=stage, message=message))

    def add_warning(self, stage: str, message: str) -> None:
        logger.warning("[%s] %s", stage, message)
        self.warnings.append(ReportEntry(stage=stage, message=message))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        """One line per entry, errors first."""
        lines = [f"ERROR [{e.stage}] {e.message}" for e in self.errors]
        lines.extend(f"WARN  [{w.stage}] {w.message}" for w in self.warnings)
        return "\n".join(lines)
