"""Tests for versiontrail.git.runner module."""

import subprocess
from unittest.mock import MagicMock

import pytest

from versiontrail.git.exceptions import (
    GitCommandError,
    LockConflictError,
    NoExecutableFoundError,
)
from versiontrail.git.runner import (
    ProcessRunner,
    get_lock_file_path,
    is_lock_conflict,
)

LOCK_STDERR = (
    "fatal: Unable to create '/repo/.git/index.lock': File exists.\n\n"
    "Another git process seems to be running in this repository"
)


def _ok(stdout="output\n", stderr=""):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = 0
    return result


def _lock_failure():
    return subprocess.CalledProcessError(128, "git", stderr=LOCK_STDERR)


class TestIsLockConflict:
    """Tests for is_lock_conflict function."""

    def test_detects_index_lock(self):
        """Test that index.lock in stderr is a lock conflict."""
        assert is_lock_conflict(LOCK_STDERR) is True

    def test_other_errors_are_not_lock_conflicts(self):
        """Test that other failures are not treated as lock conflicts."""
        assert is_lock_conflict("fatal: not a git repository") is False

    def test_empty_stderr(self):
        """Test that missing stderr is not a lock conflict."""
        assert is_lock_conflict("") is False
        assert is_lock_conflict(None) is False


class TestGetLockFilePath:
    """Tests for get_lock_file_path function."""

    def test_regular_repository(self, mock_repo_root):
        """Test lock path for a .git directory."""
        assert get_lock_file_path(mock_repo_root) == mock_repo_root / ".git" / "index.lock"

    def test_gitdir_file(self, temp_dir):
        """Test lock path when .git is a file pointing elsewhere."""
        worktree = temp_dir / "worktree"
        worktree.mkdir()
        real_git_dir = temp_dir / "main" / ".git" / "worktrees" / "wt"
        (worktree / ".git").write_text(f"gitdir: {real_git_dir}\n")

        assert get_lock_file_path(worktree) == real_git_dir / "index.lock"

    def test_relative_gitdir_file(self, temp_dir):
        """Test that a relative gitdir is resolved against the root."""
        (temp_dir / ".git").write_text("gitdir: ../modules/sub\n")

        assert get_lock_file_path(temp_dir) == temp_dir / "../modules/sub" / "index.lock"


class TestProcessRunnerRun:
    """Tests for ProcessRunner.run."""

    def test_successful_command(self, mocker, runner):
        """Test successful git command execution."""
        mock_run = mocker.patch("subprocess.run", return_value=_ok("output\n"))

        result = runner.run(["status"], cwd="/repo")

        assert result.stdout == "output"
        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "status"]
        assert kwargs["cwd"] == "/repo"
        assert kwargs["check"] is True

    def test_strip_false_keeps_leading_whitespace(self, mocker, runner):
        """Test that porcelain output keeps its leading status column."""
        mocker.patch("subprocess.run", return_value=_ok(" M file.txt\n?? new.txt\n"))

        result = runner.run(["status", "--porcelain"], cwd="/repo", strip=False)

        assert result.stdout == " M file.txt\n?? new.txt"

    def test_custom_executable(self, mocker, no_sleep):
        """Test that the configured git executable is used."""
        mock_run = mocker.patch("subprocess.run", return_value=_ok())

        ProcessRunner(git_executable="/opt/git/bin/git", sleep=no_sleep).run(["log"], cwd="/repo")

        assert mock_run.call_args[0][0] == ["/opt/git/bin/git", "log"]

    def test_failed_command_raises_error(self, mocker, runner, no_sleep):
        """Test that a failed command raises GitCommandError without retrying."""
        mock_run = mocker.patch(
            "subprocess.run",
            side_effect=subprocess.CalledProcessError(1, "git", stderr="fatal: bad revision"),
        )

        with pytest.raises(GitCommandError) as exc_info:
            runner.run(["show", "nope"], cwd="/repo")

        assert mock_run.call_count == 1
        assert no_sleep.call_count == 0
        assert exc_info.value.attempts == 1
        assert "bad revision" in str(exc_info.value)
        assert "Git command failed" in str(exc_info.value)
        assert not isinstance(exc_info.value, LockConflictError)

    def test_git_not_found_raises_error(self, mocker, runner):
        """Test that missing git raises NoExecutableFoundError."""
        mocker.patch("subprocess.run", side_effect=FileNotFoundError())

        with pytest.raises(NoExecutableFoundError) as exc_info:
            runner.run(["status"], cwd="/repo")

        assert "not installed" in str(exc_info.value)

    def test_lock_conflict_then_success(self, mocker, runner, no_sleep, mock_repo_root):
        """Test that two lock failures followed by success return the output."""
        lock_file = mock_repo_root / ".git" / "index.lock"
        lock_file.write_text("")
        mock_run = mocker.patch(
            "subprocess.run",
            side_effect=[_lock_failure(), _lock_failure(), _ok("done\n")],
        )

        result = runner.run(["add", "."], cwd=mock_repo_root)

        assert result.stdout == "done"
        assert mock_run.call_count == 3
        assert not lock_file.exists()
        # Linear backoff: delay * attempt
        assert [c.args[0] for c in no_sleep.call_args_list] == pytest.approx([0.1, 0.2])

    def test_lock_conflict_exhausts_retries(self, mocker, runner, no_sleep, mock_repo_root):
        """Test that a persistent lock raises LockConflictError after 3 attempts."""
        mock_run = mocker.patch("subprocess.run", side_effect=_lock_failure())

        with pytest.raises(LockConflictError) as exc_info:
            runner.run(["add", "."], cwd=mock_repo_root)

        assert mock_run.call_count == 3
        assert exc_info.value.attempts == 3
        assert "index.lock" in str(exc_info.value)
        assert no_sleep.call_count == 2

    def test_per_call_retry_count(self, mocker, runner, no_sleep, mock_repo_root):
        """Test that max_retries=0 disables the retry."""
        mock_run = mocker.patch("subprocess.run", side_effect=_lock_failure())

        with pytest.raises(LockConflictError):
            runner.run(["add", "."], cwd=mock_repo_root, max_retries=0)

        assert mock_run.call_count == 1
        no_sleep.assert_not_called()

    def test_env_is_merged_with_process_environment(self, mocker, runner, monkeypatch):
        """Test that extra env vars are added to the inherited environment."""
        monkeypatch.setenv("KEEP_ME", "1")
        mock_run = mocker.patch("subprocess.run", return_value=_ok())

        runner.run(["commit"], cwd="/repo", env={"GIT_AUTHOR_NAME": "Someone"})

        env = mock_run.call_args.kwargs["env"]
        assert env["GIT_AUTHOR_NAME"] == "Someone"
        assert env["KEEP_ME"] == "1"


class TestRemoveLockFile:
    """Tests for ProcessRunner.remove_lock_file."""

    def test_removes_existing_lock(self, runner, mock_repo_root):
        """Test that an existing lock file is removed."""
        lock_file = mock_repo_root / ".git" / "index.lock"
        lock_file.write_text("")

        assert runner.remove_lock_file(mock_repo_root) is True
        assert not lock_file.exists()

    def test_missing_lock_is_fine(self, runner, mock_repo_root):
        """Test that a missing lock file is not an error."""
        assert runner.remove_lock_file(mock_repo_root) is False


class TestIsAvailable:
    """Tests for ProcessRunner.is_available."""

    def test_available(self, mocker, runner):
        """Test that a working git is reported as available."""
        mocker.patch("subprocess.run", return_value=_ok("git version 2.43.0\n"))

        assert runner.is_available() is True
        assert runner.version() == "git version 2.43.0"

    def test_not_installed(self, mocker, runner):
        """Test that a missing git is reported as unavailable."""
        mocker.patch("subprocess.run", side_effect=FileNotFoundError())

        assert runner.is_available() is False
