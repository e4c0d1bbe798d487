"""Tests for versiontrail.service module."""

import subprocess
from dataclasses import dataclass
from typing import Optional
from unittest.mock import MagicMock

import pytest

from versiontrail.config import Settings
from versiontrail.git.exceptions import (
    GitError,
    NoExecutableFoundError,
    NoRepositoryFoundError,
)
from versiontrail.service import (
    FIRST_COMMIT_MESSAGE,
    GIT_NOT_INSTALLED_MESSAGE,
    README_PLACEHOLDER,
    VersionTrail,
)

LOCK_STDERR = (
    "fatal: Unable to create '.git/index.lock': File exists.\n\n"
    "Another git process seems to be running in this repository"
)


@dataclass
class FakeHost:
    branch: Optional[str] = None
    repositories: tuple = ()

    def is_ready(self):
        return True

    def head_branch(self):
        return self.branch


class TestEnvironmentChecks:
    """Tests for git availability checks."""

    def test_git_missing(self, temp_dir):
        """Test that every operation reports a missing git."""
        runner = MagicMock()
        runner.is_available.return_value = False
        trail = VersionTrail([temp_dir], runner=runner)

        with pytest.raises(NoExecutableFoundError) as exc_info:
            trail.list_commits()

        assert str(exc_info.value) == GIT_NOT_INSTALLED_MESSAGE
        assert trail.has_repository() is False

    def test_availability_checked_once(self, temp_dir):
        """Test that the git check is memoized."""
        runner = MagicMock()
        runner.is_available.return_value = True
        trail = VersionTrail([temp_dir], runner=runner)

        trail.is_git_installed()
        trail.is_git_installed()

        runner.is_available.assert_called_once()

    def test_no_repository(self, temp_dir, git):
        """Test the error for a workspace without repositories."""
        trail = VersionTrail([temp_dir], settings=Settings(host_wait_timeout=0))

        with pytest.raises(NoRepositoryFoundError):
            trail.locate_repository()
        assert trail.has_repository() is False


class TestReads:
    """Tests for read operations on a real repository."""

    def test_list_commits_uses_page_size(self, repo_with_history):
        """Test that the configured page size is the default limit."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo], settings=Settings(page_size=2))

        page = trail.list_commits()

        assert len(page.commits) == 2
        assert page.has_more is True
        assert page.total_count == 5

    def test_commit_details(self, repo_with_history):
        """Test that commit details include author and changed files."""
        repo, hashes = repo_with_history
        trail = VersionTrail([repo])

        details = trail.get_commit_details(hashes[0])

        assert "Test User" in details
        assert "a.txt" in details
        assert "Commit 1" in details

    def test_unknown_commit_details(self, repo_with_history):
        """Test the error for an unknown commit."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo])

        with pytest.raises(GitError) as exc_info:
            trail.get_commit_details("nope")

        assert str(exc_info.value).startswith("Error showing commit details")

    def test_branch_info(self, repo_with_history, git):
        """Test branch name and version count."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo])

        info = trail.get_current_branch_info()

        assert info.branch == git(repo, "rev-parse", "--abbrev-ref", "HEAD")
        assert info.version == 5

    def test_branch_info_prefers_host(self, repo_with_history):
        """Test that the host's HEAD name wins."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo], host=FakeHost(branch="feature/x"))

        assert trail.get_current_branch_info().branch == "feature/x"

    def test_branch_info_empty_repository(self, git_repo):
        """Test an unborn branch reports version 0."""
        trail = VersionTrail([git_repo])

        assert trail.get_current_branch_info().version == 0

    def test_find_repositories(self, temp_dir):
        """Test listing repositories in a multi-repo workspace."""
        (temp_dir / "one" / ".git").mkdir(parents=True)
        (temp_dir / "two" / ".git").mkdir(parents=True)

        trail = VersionTrail([temp_dir])

        assert trail.find_repositories() == [temp_dir / "one", temp_dir / "two"]


class TestMutations:
    """Tests for mutating operations and cache coherence."""

    def test_restore_refreshes_history(self, repo_with_history):
        """Test that history read after a restore includes the new version."""
        repo, hashes = repo_with_history
        trail = VersionTrail([repo])
        assert trail.list_commits().total_count == 5

        result = trail.restore_to_version(hashes[2])

        page = trail.list_commits()
        assert result.success is True
        assert page.total_count == 6
        assert page.commits[0].sequence_version == 6

    def test_restore_survives_lock_conflicts(self, repo_with_history, mocker):
        """Test that two lock conflicts followed by success give a normal restore."""
        repo, hashes = repo_with_history
        real_run = subprocess.run
        conflicts = []

        def run(cmd, **kwargs):
            if cmd[1] == "read-tree" and len(conflicts) < 2:
                conflicts.append(cmd)
                raise subprocess.CalledProcessError(128, cmd, stderr=LOCK_STDERR)
            return real_run(cmd, **kwargs)

        mocker.patch("versiontrail.git.runner.subprocess.run", side_effect=run)
        sleep = MagicMock()
        trail = VersionTrail([repo], sleep=sleep)

        result = trail.restore_to_version(hashes[2], pre_confirmed=True)

        assert result.success is True
        assert result.message == "Restored version 3"
        assert len(conflicts) == 2
        assert [c.args[0] for c in sleep.call_args_list] == [0.1, 0.2]
        assert trail.list_commits().total_count == 6
        assert (repo / "a.txt").read_text() == "v3\n"

    def test_save_refreshes_history(self, repo_with_history):
        """Test that a save is immediately visible."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo])
        trail.list_commits()
        (repo / "a.txt").write_text("v6\n")

        trail.save_all_changes("Sixth")

        assert trail.list_commits().commits[0].subject == "Sixth"

    def test_inspect_and_discard(self, repo_with_history):
        """Test inspecting then discarding changes."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo])
        (repo / "a.txt").write_text("dirty\n")

        assert trail.inspect_uncommitted_changes().has_changes is True
        assert trail.discard_all_changes() is True
        assert trail.inspect_uncommitted_changes().has_changes is False

    def test_clear_all_caches(self, repo_with_history):
        """Test that clear_all_caches empties both caches."""
        repo, _ = repo_with_history
        trail = VersionTrail([repo])
        trail.list_commits()

        trail.clear_all_caches()

        assert len(trail.history.cache) == 0
        assert len(trail.locator.cache) == 0

    def test_backups(self, repo_with_history):
        """Test that a restore's backup branch can be listed and cleaned up."""
        repo, hashes = repo_with_history
        trail = VersionTrail([repo])

        result = trail.restore_to_version(hashes[0])

        assert [b.name for b in trail.list_backups()] == [result.backup_branch]
        assert trail.cleanup_backups(days_to_keep=7) == []
        assert trail.cleanup_backups(days_to_keep=0) == [result.backup_branch]


class TestCreateRepository:
    """Tests for VersionTrail.create_repository."""

    def test_initializes_folder_with_files(self, temp_dir, git):
        """Test init, identity and first commit for a folder with content."""
        project = temp_dir / "project"
        project.mkdir()
        (project / "main.py").write_text("print('hi')\n")
        trail = VersionTrail([project])

        root = trail.create_repository()

        assert root == project
        assert git(project, "log", "-1", "--format=%s") == FIRST_COMMIT_MESSAGE
        assert git(project, "ls-files") == "main.py"
        assert trail.has_repository() is True

    def test_empty_folder_gets_readme(self, temp_dir, git):
        """Test that an empty folder gets a placeholder README."""
        project = temp_dir / "empty"
        project.mkdir()

        VersionTrail([temp_dir]).create_repository(project)

        assert (project / "README.md").read_text() == README_PLACEHOLDER
        assert git(project, "rev-list", "--count", "HEAD") == "1"
