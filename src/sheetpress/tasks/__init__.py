"""Task queue: models, Google Sheets client, and actionable-task filtering."""

from sheetpress.tasks.models import (
    OPTIONAL_COLUMNS,
    REQUIRED_COLUMNS,
    CellUpdate,
    ContentType,
    Task,
    TaskBatch,
    TaskStatus,
)
from sheetpress.tasks.services import (
    TASKS_FILE,
    QueueHeader,
    build_batch,
    fetch_actionable_tasks,
    filter_actionable,
    parse_tasks,
    write_task_batch,
)
from sheetpress.tasks.sheets import SheetsTaskQueue, TaskQueue, column_letter

__all__ = [
    "OPTIONAL_COLUMNS",
    "REQUIRED_COLUMNS",
    "TASKS_FILE",
    "CellUpdate",
    "ContentType",
    "QueueHeader",
    "SheetsTaskQueue",
    "Task",
    "TaskBatch",
    "TaskQueue",
    "TaskStatus",
    "build_batch",
    "column_letter",
    "fetch_actionable_tasks",
    "filter_actionable",
    "parse_tasks",
    "write_task_batch",
]
