"""Task queue reading, filtering, and batch materialization."""

from __future__ import annotations

import logging
from pathlib import Path

from sheetpress.core import atomic_write
from sheetpress.errors import SchemaError
from sheetpress.tasks.models import (
    OPTIONAL_COLUMNS,
    REQUIRED_COLUMNS,
    Task,
    TaskBatch,
)
from sheetpress.tasks.sheets import TaskQueue

logger = logging.getLogger(__name__)

TASKS_FILE = Path("automation") / "tasks.json"


class QueueHeader:
    """Column positions resolved from the queue's header row."""

    def __init__(self, header_row: list[str]) -> None:
        self.names = [str(h or "").strip().lower() for h in header_row]
        self.columns: dict[str, int] = {}
        for col in REQUIRED_COLUMNS:
            if col not in self.names:
                raise SchemaError(col)
            self.columns[col] = self.names.index(col)
        for col in OPTIONAL_COLUMNS:
            if col in self.names:
                self.columns[col] = self.names.index(col)

    def index(self, column: str) -> int | None:
        """0-based position of ``column``, or None if an absent optional column."""
        return self.columns.get(column)

    @property
    def status_column(self) -> int:
        """1-based position of the status column, for A1 addressing."""
        return self.columns["status"] + 1


def parse_tasks(rows: list[list[str]]) -> tuple[QueueHeader | None, list[Task]]:
    """Build one Task per data row, keeping the original sheet row number.

    Returns:
        The resolved header (None if the sheet is empty) and all tasks,
        actionable or not.

    Raises:
        SchemaError: If a required column is absent from the header.
    """
    if not rows:
        return None, []

    header = QueueHeader(rows[0])
    tasks: list[Task] = []
    for offset, row in enumerate(rows[1:]):

        def cell(column: str, _row: list[str] = row) -> str:
            idx = header.index(column)
            if idx is None or idx >= len(_row) or _row[idx] is None:
                return ""
            return str(_row[idx]).strip()

        fields = {col: cell(col) for col in (*REQUIRED_COLUMNS, *OPTIONAL_COLUMNS)}
        fields["status"] = fields["status"].upper()
        # header is row 1
        tasks.append(Task(row_number=offset + 2, **fields))
    return header, tasks


def filter_actionable(tasks: list[Task], as_of: str) -> list[Task]:
    """Keep READY tasks due on or before ``as_of`` that have a slug and type."""
    return [t for t in tasks if t.is_actionable(as_of)]


def fetch_actionable_tasks(queue: TaskQueue, as_of: str) -> tuple[QueueHeader | None, list[Task]]:
    """Read the queue and return its header with the actionable subset.

    An empty result is a valid "nothing to do" outcome, not an error.
    """
    rows = queue.read_rows()
    if len(rows) < 2:
        logger.info("Sheet has no data rows. Nothing to process.")
        header = QueueHeader(rows[0]) if rows else None
        return header, []

    header, tasks = parse_tasks(rows)
    actionable = filter_actionable(tasks, as_of)
    logger.info("Found %d actionable task(s) of %d row(s)", len(actionable), len(tasks))
    return header, actionable


def build_batch(tasks: list[Task], today: str) -> TaskBatch:
    return TaskBatch(today=today, tasks=tuple(tasks))


def write_task_batch(batch: TaskBatch, root: Path) -> Path:
    """Serialize the batch to automation/tasks.json atomically."""
    path = root / TASKS_FILE
    atomic_write(path, batch.to_json() + "\n")
    logger.info("Wrote %d task(s) to %s", len(batch), path)
    return path
