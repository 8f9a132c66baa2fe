"""Tests for the git CLI wrapper."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sheetpress.errors import GitError
from sheetpress.git import GitRepo


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


@pytest.fixture
def repo(tmp_path: Path) -> GitRepo:
    return GitRepo(tmp_path)


class TestGitRepo:
    @patch("sheetpress.git.subprocess.run")
    def test_status_porcelain(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed(" M index.html\n")

        assert repo.status_porcelain() == "M index.html"
        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "status", "--porcelain"]
        assert kwargs["cwd"] == repo.root

    @patch("sheetpress.git.subprocess.run")
    def test_current_branch(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed("main\n")
        assert repo.current_branch() == "main"

    @patch("sheetpress.git.subprocess.run")
    def test_failure_raises_git_error(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed(returncode=1, stderr="rejected")

        with pytest.raises(GitError) as exc_info:
            repo.push("origin", "main")

        assert exc_info.value.args_list == ["push", "origin", "main"]
        assert exc_info.value.returncode == 1
        assert "rejected" in str(exc_info.value)

    @patch("sheetpress.git.subprocess.run")
    def test_missing_git_binary(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.side_effect = FileNotFoundError("git")

        with pytest.raises(GitError) as exc_info:
            repo.status_porcelain()

        assert exc_info.value.returncode == 127

    @patch("sheetpress.git.subprocess.run")
    def test_commit_message_passed_verbatim(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed()
        repo.commit("seo: publish 1 page(s) - 2026-01-15")
        assert mock_run.call_args.args[0] == [
            "git",
            "commit",
            "-m",
            "seo: publish 1 page(s) - 2026-01-15",
        ]


class TestHistoryTimes:
    @patch("sheetpress.git.subprocess.run")
    def test_last_commit_time(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed("1700000000\n")
        assert repo.last_commit_time("blog/a/index.html") == 1_700_000_000

    @patch("sheetpress.git.subprocess.run")
    def test_first_added_time_uses_oldest(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed("1700000300\n1700000100\n")
        assert repo.first_added_time("blog/a/index.html") == 1_700_000_100

    @patch("sheetpress.git.subprocess.run")
    def test_untracked_path_is_zero(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed("")
        assert repo.last_commit_time("blog/new/index.html") == 0
        assert repo.first_added_time("blog/new/index.html") == 0

    @patch("sheetpress.git.subprocess.run")
    def test_not_a_repo_is_zero(self, mock_run: MagicMock, repo: GitRepo) -> None:
        mock_run.return_value = _completed(returncode=128, stderr="not a git repository")
        assert repo.last_commit_time("x") == 0
