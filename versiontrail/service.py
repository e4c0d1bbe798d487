"""Upward API for versiontrail.

VersionTrail wires the runner, locator, history store, change inspector and
restore engine together and is what a UI or command layer talks to. Every
mutating call clears both caches before it returns.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

from versiontrail.cache import ResultCache
from versiontrail.config import Settings
from versiontrail.git.branch import (
    BackupBranch,
    cleanup_old_backups,
    get_current_branch,
    list_backup_branches,
)
from versiontrail.git.exceptions import (
    GitCommandError,
    GitError,
    NoExecutableFoundError,
    operation_context,
)
from versiontrail.git.history import CommitHistoryStore
from versiontrail.git.locator import HostIntegration, RepositoryLocator
from versiontrail.git.models import BranchInfo, ChangeSet, CommitPage
from versiontrail.git.runner import ProcessRunner
from versiontrail.git.status import ChangeSetInspector
from versiontrail.restore import ConfirmCallback, RestoreEngine, RestoreResult

logger = logging.getLogger(__name__)

GIT_NOT_INSTALLED_MESSAGE = (
    "Git is not installed on this system. Please install Git and try again."
)
NO_WORKSPACE_FOLDER_MESSAGE = "Please open a folder first."
FIRST_COMMIT_MESSAGE = "First save! Welcome to versiontrail version tracking"
README_PLACEHOLDER = "# My Project\n\nWelcome to your version-tracked project!\n"
DEFAULT_USER_NAME = "versiontrail user"
DEFAULT_USER_EMAIL = "versiontrail@localhost"


class VersionTrail:
    """Browse history and restore earlier versions of the active repository.

    Not thread-safe: callers must serialize mutating calls (restore, save,
    discard, create) for a repository.
    """

    def __init__(
        self,
        workspace_folders: Optional[Sequence[Path]] = None,
        host: Optional[HostIntegration] = None,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or Settings()
        self.workspace_folders = [Path(f) for f in (workspace_folders or [Path.cwd()])]
        self.host = host
        self.runner = runner or ProcessRunner(
            git_executable=self.settings.git_executable,
            max_retries=self.settings.max_retries,
            retry_delay=self.settings.retry_delay,
            sleep=sleep,
        )
        self.locator = RepositoryLocator(
            self.runner,
            self.workspace_folders,
            host=host,
            scan_depth=self.settings.scan_depth,
            cache=ResultCache(ttl=self.settings.repository_cache_ttl, clock=clock),
            host_wait_timeout=self.settings.host_wait_timeout,
            host_poll_interval=self.settings.host_poll_interval,
            sleep=sleep,
        )
        self.history = CommitHistoryStore(
            self.runner,
            self.locator,
            cache=ResultCache(ttl=self.settings.history_cache_ttl, clock=clock),
        )
        self.inspector = ChangeSetInspector(self.runner)
        self.engine = RestoreEngine(
            self.runner,
            self.locator,
            self.history,
            self.inspector,
            on_mutation=self.clear_all_caches,
            backup_enabled=self.settings.backup_enabled,
            backup_prefix=self.settings.backup_prefix,
            backup_retention_days=self.settings.backup_retention_days,
            max_backups=self.settings.max_backups,
        )
        self._git_available: Optional[bool] = None

    # ------------------------------------------------------------------
    # Environment checks
    # ------------------------------------------------------------------

    def is_git_installed(self) -> bool:
        """Check (once per instance) whether git can be run."""
        if self._git_available is None:
            self._git_available = self.runner.is_available()
            if not self._git_available:
                logger.error(GIT_NOT_INSTALLED_MESSAGE)
        return self._git_available

    def _ensure_git(self) -> None:
        if not self.is_git_installed():
            raise NoExecutableFoundError(GIT_NOT_INSTALLED_MESSAGE)

    def locate_repository(self) -> Path:
        """Get the active repository root.

        Raises:
            NoExecutableFoundError: If git is not installed.
            NoRepositoryFoundError: If no repository can be found.
        """
        self._ensure_git()
        return self.locator.locate()

    def has_repository(self) -> bool:
        if not self.is_git_installed():
            return False
        return self.locator.has_repository()

    def find_repositories(self) -> list[Path]:
        """List every repository in the workspace folders."""
        return self.locator.find_all()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_commits(self, offset: int = 0, limit: Optional[int] = None) -> CommitPage:
        """Get a page of history, newest first."""
        self._ensure_git()
        return self.history.get_page(offset, limit or self.settings.page_size)

    def get_commit_details(self, commit_hash: str) -> str:
        self._ensure_git()
        return self.history.get_details(commit_hash)

    def inspect_uncommitted_changes(self) -> ChangeSet:
        self._ensure_git()
        with operation_context("Failed to inspect uncommitted changes"):
            return self.inspector.inspect(self.locator.locate())

    def get_current_branch_info(self) -> BranchInfo:
        """Get the current branch name and total version count.

        The host integration's HEAD is preferred when it reports one.
        """
        self._ensure_git()
        root = self.locator.locate()
        branch = self.host.head_branch() if self.host is not None else None
        if not branch:
            try:
                branch = get_current_branch(self.runner, root)
            except GitCommandError:
                # Unborn branch
                branch = None
        return BranchInfo(branch=branch, version=self.history.count(root))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def restore_to_version(
        self,
        commit_hash: str,
        pre_confirmed: bool = False,
        confirm: Optional[ConfirmCallback] = None,
    ) -> RestoreResult:
        """Restore commit_hash as a new commit. See RestoreEngine.restore."""
        self._ensure_git()
        return self.engine.restore(commit_hash, pre_confirmed=pre_confirmed, confirm=confirm)

    def save_all_changes(self, message: str) -> str:
        """Commit every uncommitted change; returns the new commit hash."""
        self._ensure_git()
        return self.engine.save_all(message)

    def discard_all_changes(self) -> bool:
        self._ensure_git()
        return self.engine.discard_all()

    def create_repository(self, path: Optional[Path] = None) -> Path:
        """Set up version tracking in a folder.

        Runs `git init`, sets a local identity when none is configured and
        records a first commit. An empty folder gets a README so the first
        commit has content.

        Args:
            path: Folder to initialize (defaults to the first workspace folder).

        Returns:
            The initialized folder.
        """
        self._ensure_git()
        if path is None:
            if not self.workspace_folders:
                raise GitError(NO_WORKSPACE_FOLDER_MESSAGE)
            path = self.workspace_folders[0]
        root = Path(path).resolve()

        try:
            with operation_context("Could not set up version tracking"):
                self.runner.run(["init"], cwd=root)
                self._ensure_identity(root)
                self.runner.run(["add", "."], cwd=root)
                try:
                    self.runner.run(["commit", "-m", FIRST_COMMIT_MESSAGE], cwd=root)
                except GitCommandError:
                    # Nothing to commit in an empty folder
                    readme = root / "README.md"
                    if readme.exists():
                        raise
                    readme.write_text(README_PLACEHOLDER)
                    self.runner.run(["add", "README.md"], cwd=root)
                    self.runner.run(["commit", "-m", FIRST_COMMIT_MESSAGE], cwd=root)
        finally:
            self.clear_all_caches()

        logger.info("Initialized repository at %s", root)
        return root

    def _ensure_identity(self, root: Path) -> None:
        for key, default in (("user.name", DEFAULT_USER_NAME), ("user.email", DEFAULT_USER_EMAIL)):
            try:
                self.runner.run(["config", key], cwd=root, max_retries=0)
            except GitCommandError:
                logger.info("No %s configured, using %r for this repository", key, default)
                self.runner.run(["config", key, default], cwd=root)

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def list_backups(self) -> list[BackupBranch]:
        self._ensure_git()
        return list_backup_branches(self.runner, self.locator.locate(), self.settings.backup_prefix)

    def cleanup_backups(self, days_to_keep: Optional[int] = None) -> list[str]:
        """Delete expired backup branches; returns the deleted names."""
        self._ensure_git()
        days = self.settings.backup_retention_days if days_to_keep is None else days_to_keep
        try:
            return cleanup_old_backups(
                self.runner,
                self.locator.locate(),
                days_to_keep=days,
                max_backups=self.settings.max_backups,
                prefix=self.settings.backup_prefix,
            )
        finally:
            self.clear_all_caches()

    # ------------------------------------------------------------------
    # Caches
    # ------------------------------------------------------------------

    def clear_all_caches(self) -> None:
        self.history.invalidate()
        self.locator.invalidate()
