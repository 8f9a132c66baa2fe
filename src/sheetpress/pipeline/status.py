"""Status write-back: existence on disk decides PUBLISHED vs ERROR."""

from __future__ import annotations

import logging
from pathlib import Path

from sheetpress.tasks.models import CellUpdate, Task, TaskBatch, TaskStatus
from sheetpress.tasks.sheets import TaskQueue, column_letter

logger = logging.getLogger(__name__)


def resolve_status(task: Task, root: Path) -> TaskStatus:
    """PUBLISHED iff the task's expected page exists under ``root``."""
    expected = task.expected_path()
    if expected is not None and (root / expected).is_file():
        return TaskStatus.PUBLISHED
    return TaskStatus.ERROR


def report_statuses(
    batch: TaskBatch,
    queue: TaskQueue,
    *,
    root: Path,
    status_column: int,
    sheet_name: str,
) -> dict[str, TaskStatus]:
    """Write a terminal status for every task in the batch.

    Args:
        status_column: 1-based column index of the queue's status column.

    Returns:
        Mapping of task id (falling back to slug) to the status written.
    """
    letter = column_letter(status_column)
    statuses: dict[str, TaskStatus] = {}
    updates: list[CellUpdate] = []

    for task in batch.tasks:
        status = resolve_status(task, root)
        statuses[task.id or task.slug] = status
        updates.append(
            CellUpdate(range=f"{sheet_name}!{letter}{task.row_number}", value=status.value)
        )
        expected = task.expected_path()
        logger.info("Task %s: %s (%s)", task.id, status.value, expected or "unknown path")

    logger.info("Updating sheet statuses...")
    queue.write_cells(updates)
    return statuses
