"""Shared test fixtures and configuration."""

import shutil
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from versiontrail.git.runner import ProcessRunner


def run_git(repo: Path, *args: str) -> str:
    """Run a git command in repo and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=str(repo),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    """Write a file, commit it and return the new short hash."""
    path = repo / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    run_git(repo, "add", "-A")
    run_git(repo, "commit", "-m", message)
    return run_git(repo, "rev-parse", "--short", "HEAD")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def mock_repo_root(temp_dir):
    """Create a mock git repository root directory."""
    # Create .git directory to simulate a git repo
    git_dir = temp_dir / ".git"
    git_dir.mkdir()
    return temp_dir


@pytest.fixture
def git_repo(temp_dir):
    """Create a real, empty git repository with a local identity."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = temp_dir / "project"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "config", "user.name", "Test User")
    run_git(repo, "config", "user.email", "test@example.com")
    run_git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def repo_with_history(git_repo):
    """A real repository with five commits of a.txt ("v1" .. "v5").

    Returns:
        (repo path, list of short hashes oldest first)
    """
    hashes = [
        commit_file(git_repo, "a.txt", f"v{i}\n", f"Commit {i}")
        for i in range(1, 6)
    ]
    return git_repo, hashes


@pytest.fixture
def no_sleep():
    """A sleep replacement that records requested delays."""
    return MagicMock()


@pytest.fixture
def runner(no_sleep):
    """A ProcessRunner that never really sleeps."""
    return ProcessRunner(sleep=no_sleep)


@pytest.fixture
def mock_git_commands(mocker):
    """Mock subprocess.run for git commands."""
    mock_run = mocker.patch("subprocess.run")
    return mock_run


@pytest.fixture
def make_commit():
    """Return a helper that writes a file and commits it."""
    return commit_file


@pytest.fixture
def git():
    """Return a helper that runs git in a repository and returns stdout."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return run_git
