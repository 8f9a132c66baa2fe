"""Google Sheets task queue client.

Wraps the Sheets v4 values API behind the narrow :class:`TaskQueue`
protocol so that the pipeline never touches the Google client directly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from google.auth.exceptions import GoogleAuthError
from httplib2 import HttpLib2Error

from sheetpress.errors import ConfigError, QueueError
from sheetpress.retry import RetryPolicy, call_with_retry
from sheetpress.tasks.models import CellUpdate

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
READ_COLUMNS = "A1:Z"

# HTTP statuses worth another attempt; anything else is a caller error.
_RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


class TaskQueue(Protocol):
    """Remote tabular task queue."""

    def read_rows(self) -> list[list[str]]:
        """Return all rows of the queue tab, header first."""
        ...

    def write_cells(self, updates: list[CellUpdate]) -> None:
        """Write each single-cell update."""
        ...


def column_letter(n: int) -> str:
    """Convert a 1-based column number to A1 letters (1 → A, 27 → AA)."""
    if n < 1:
        raise ValueError(f"Column number must be >= 1, got {n}")
    letters = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


class SheetsTaskQueue:
    """TaskQueue backed by a Google Sheet tab.

    The Google API client is built lazily on first use from a service
    account key file.
    """

    def __init__(
        self,
        sheet_id: str,
        sheet_name: str,
        credentials_file: Path,
        *,
        retry_policy: RetryPolicy | None = None,
        service: Any | None = None,
    ) -> None:
        self.sheet_id = sheet_id
        self.sheet_name = sheet_name
        self.credentials_file = credentials_file
        self.retry_policy = retry_policy or RetryPolicy()
        self._service = service

    def _values(self) -> Any:
        if self._service is None:
            from google.oauth2 import service_account
            from googleapiclient.discovery import build

            logger.info("Authenticating with Google Sheets...")
            try:
                credentials = service_account.Credentials.from_service_account_file(
                    str(self.credentials_file), scopes=SHEETS_SCOPES
                )
            except (OSError, ValueError, GoogleAuthError) as exc:
                raise ConfigError(
                    f"Cannot load service account key {self.credentials_file}: {exc}"
                ) from exc
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service.spreadsheets().values()

    def _execute(self, request: Any, label: str) -> dict:
        from googleapiclient.errors import HttpError

        try:
            return request.execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            raise QueueError(
                f"Sheets API {label} failed (status {status}): {exc}",
                retryable=status in _RETRYABLE_STATUSES,
            ) from exc
        except (HttpLib2Error, GoogleAuthError, OSError, TimeoutError) as exc:
            # transport and token-refresh failures surface outside HttpError
            raise QueueError(f"Sheets API {label} failed: {exc!r}") from exc

    def read_rows(self) -> list[list[str]]:
        range_ = f"{self.sheet_name}!{READ_COLUMNS}"
        logger.info("Reading sheet: %s", self.sheet_name)

        def _read() -> dict:
            request = self._values().get(spreadsheetId=self.sheet_id, range=range_)
            return self._execute(request, "read")

        resp = call_with_retry(
            _read, policy=self.retry_policy, label="sheet read", retry_on=(QueueError,)
        )
        return resp.get("values", [])

    def write_cells(self, updates: list[CellUpdate]) -> None:
        if not updates:
            return
        body = {
            "valueInputOption": "RAW",
            "data": [{"range": u.range, "values": [[u.value]]} for u in updates],
        }

        def _write() -> dict:
            request = self._values().batchUpdate(spreadsheetId=self.sheet_id, body=body)
            return self._execute(request, "write")

        call_with_retry(
            _write, policy=self.retry_policy, label="sheet write", retry_on=(QueueError,)
        )
        logger.info("Updated %d status cell(s)", len(updates))
