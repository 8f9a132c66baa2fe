"""Thin wrapper over the ``git`` CLI for the working tree being published."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from sheetpress.errors import GitError

logger = logging.getLogger(__name__)


class GitRepo:
    """Runs git commands inside one working tree."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.root,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise GitError(list(args), 127, "git executable not found") from exc
        if check and result.returncode != 0:
            raise GitError(list(args), result.returncode, result.stderr or result.stdout)
        return result

    def status_porcelain(self) -> str:
        """Porcelain status; empty string means a clean tree."""
        return self._run("status", "--porcelain").stdout.strip()

    def current_branch(self) -> str:
        return self._run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def pull_rebase(self) -> None:
        self._run("pull", "--rebase")

    def add_all(self) -> None:
        self._run("add", "-A")

    def commit(self, message: str) -> None:
        self._run("commit", "-m", message)

    def push(self, remote: str, branch: str) -> None:
        self._run("push", remote, branch)

    def last_commit_time(self, rel_path: str) -> int:
        """Unix time of the latest commit touching ``rel_path``; 0 if none."""
        result = self._run("log", "-1", "--format=%ct", "--", rel_path, check=False)
        if result.returncode != 0:
            return 0
        return _parse_timestamp(result.stdout.strip())

    def first_added_time(self, rel_path: str) -> int:
        """Unix time of the commit that first added ``rel_path``; 0 if none."""
        result = self._run(
            "log", "--diff-filter=A", "--format=%ct", "--", rel_path, check=False
        )
        if result.returncode != 0:
            return 0
        lines = result.stdout.split()
        # log is newest first; the oldest add is the creation
        return _parse_timestamp(lines[-1]) if lines else 0


def _parse_timestamp(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return 0
