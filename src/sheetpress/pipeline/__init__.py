"""Pipeline modules: orchestration layer for the sheetpress publish run.

  publish: the staged run (clean check → queue → generate → rollups → commit)
  status:  per-task PUBLISHED/ERROR write-back to the queue
"""

from sheetpress.pipeline.publish import PipelineResult, Stage, run_pipeline
from sheetpress.pipeline.status import report_statuses, resolve_status

__all__ = ["PipelineResult", "Stage", "report_statuses", "resolve_status", "run_pipeline"]
