"""Restore engine for versiontrail.

Contains:
- RestoreEngine: Restores an earlier version as a new commit, rolling back on failure

A restore never rewrites history. It loads the target commit's tree into the
index, materializes it in the working tree and records it as a new commit on
top of the current one:

    IDLE -> VALIDATING_CHANGES -> [AWAITING_USER_DECISION] -> RESTORING
         -> COMMITTING -> DONE -> IDLE

A failure while RESTORING or COMMITTING moves to ROLLING_BACK, which returns
the repository to the captured branch and HEAD before the error is re-raised.
Destructive steps are never retried.

The engine holds no lock of its own. Callers must not start a second mutating
operation on the same repository while one is running.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from versiontrail.git.branch import (
    DEFAULT_BACKUP_PREFIX,
    cleanup_old_backups,
    create_backup_branch,
    get_current_branch,
    get_head_hash,
)
from versiontrail.git.exceptions import (
    GitError,
    NoUncommittedChangesError,
    RestoreFailedError,
    operation_context,
)
from versiontrail.git.history import CommitHistoryStore, RepositoryPathProvider
from versiontrail.git.models import UncommittedChange
from versiontrail.git.runner import ProcessRunner
from versiontrail.git.status import ChangeSetInspector
from versiontrail.restore.message import build_restore_message, commit_message_file
from versiontrail.restore.models import RestoreResult, RestoreState

logger = logging.getLogger(__name__)

RESTORE_FAILED_MESSAGE = "Failed to restore version"
RESTORE_CANCELLED_MESSAGE = "Restore cancelled by user."
NO_UNCOMMITTED_CHANGES_MESSAGE = "No uncommitted changes to save."

ConfirmCallback = Callable[[Sequence[UncommittedChange]], bool]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RestoreEngine:
    """Performs restore, save and discard on a repository.

    ``on_mutation`` is called after every mutating operation (successful or
    not) before it returns, so the owner can clear its caches.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        locator: RepositoryPathProvider,
        history: CommitHistoryStore,
        inspector: ChangeSetInspector,
        on_mutation: Optional[Callable[[], None]] = None,
        backup_enabled: bool = True,
        backup_prefix: str = DEFAULT_BACKUP_PREFIX,
        backup_retention_days: int = 7,
        max_backups: Optional[int] = 10,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.runner = runner
        self.locator = locator
        self.history = history
        self.inspector = inspector
        self.on_mutation = on_mutation
        self.backup_enabled = backup_enabled
        self.backup_prefix = backup_prefix
        self.backup_retention_days = backup_retention_days
        self.max_backups = max_backups
        self._now = now
        self.state = RestoreState.IDLE
        self.transitions: list[RestoreState] = []

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(
        self,
        target_hash: str,
        pre_confirmed: bool = False,
        confirm: Optional[ConfirmCallback] = None,
        repo_root: Optional[Path] = None,
    ) -> RestoreResult:
        """Restore the repository to target_hash as a new commit.

        Args:
            target_hash: Commit whose file tree should be restored.
            pre_confirmed: Discard uncommitted changes without asking.
            confirm: Called with the uncommitted changes when the tree is dirty
                and the caller has not pre-confirmed. Returning False cancels.
                Without a callback a dirty tree cancels the restore.
            repo_root: Repository root (located when omitted).

        Returns:
            RestoreResult. ``success`` is False only when the user declined.

        Raises:
            RestoreFailedError: If restoring or committing failed. The
                repository has been rolled back when ``rolled_back`` is True.
            GitError: If validation failed (nothing was changed).
        """
        if not target_hash:
            raise ValueError("No commit hash provided for restore")

        self.transitions = []
        try:
            return self._restore(target_hash, pre_confirmed, confirm, repo_root)
        finally:
            self._enter(RestoreState.IDLE)

    def _restore(
        self,
        target_hash: str,
        pre_confirmed: bool,
        confirm: Optional[ConfirmCallback],
        repo_root: Optional[Path],
    ) -> RestoreResult:
        with operation_context(RESTORE_FAILED_MESSAGE):
            root = Path(repo_root) if repo_root is not None else self.locator.locate()

            self._enter(RestoreState.VALIDATING_CHANGES)
            previous_hash = get_head_hash(self.runner, root)
            branch = get_current_branch(self.runner, root)
            version = self.history.version_of(target_hash, root)
            changes = self.inspector.inspect(root)

        if changes.has_changes and not pre_confirmed:
            self._enter(RestoreState.AWAITING_USER_DECISION)
            accepted = confirm(changes.files) if confirm is not None else False
            if not accepted:
                logger.info("Restore of %s declined with %d uncommitted file(s)", target_hash, len(changes.files))
                return RestoreResult(
                    success=False,
                    previous_commit_hash=previous_hash,
                    branch_name=branch,
                    message=RESTORE_CANCELLED_MESSAGE,
                )

        backup_branch = self._create_backup(root, previous_hash)

        try:
            self._enter(RestoreState.RESTORING)
            self._materialize(root, target_hash)
            self._enter(RestoreState.COMMITTING)
            new_hash = self._commit_restore(root, target_hash, version, previous_hash)
        except Exception as error:
            self._enter(RestoreState.ROLLING_BACK)
            rolled_back = self._rollback(root, branch, previous_hash)
            raise RestoreFailedError(
                f"{RESTORE_FAILED_MESSAGE}: {error}",
                cause=error,
                rolled_back=rolled_back,
            ) from error
        finally:
            self._notify_mutation()

        self._enter(RestoreState.DONE)
        logger.info("Restored version %d (%s) as %s on %s", version, target_hash, new_hash, branch)
        self._prune_backups(root)

        return RestoreResult(
            success=True,
            new_commit_hash=new_hash,
            previous_commit_hash=previous_hash,
            branch_name=branch,
            backup_branch=backup_branch,
            message=f"Restored version {version}",
        )

    def _enter(self, state: RestoreState) -> None:
        logger.debug("Restore state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def _create_backup(self, root: Path, previous_hash: str) -> Optional[str]:
        if not self.backup_enabled:
            return None
        try:
            return create_backup_branch(
                self.runner, root, previous_hash, prefix=self.backup_prefix, now=self._now()
            )
        except GitError as e:
            logger.warning("Failed to create backup branch: %s", e)
            return None

    def _prune_backups(self, root: Path) -> None:
        if not self.backup_enabled:
            return
        try:
            cleanup_old_backups(
                self.runner,
                root,
                days_to_keep=self.backup_retention_days,
                max_backups=self.max_backups,
                prefix=self.backup_prefix,
                now=self._now(),
            )
        except GitError as e:
            logger.warning("Error during backup cleanup: %s", e)

    def _materialize(self, root: Path, target_hash: str) -> None:
        """Make index and working tree match the target commit's tree."""
        # Discard uncommitted changes
        self.runner.run(["reset", "--hard"], cwd=root)
        self.runner.run(["clean", "-fd"], cwd=root)
        # Load the target tree into the index and write it out
        self.runner.run(["read-tree", target_hash], cwd=root)
        self.runner.run(["checkout-index", "-a", "-f"], cwd=root)
        # Files absent from the target tree are now untracked
        self.runner.run(["clean", "-fd"], cwd=root)

    def _commit_restore(self, root: Path, target_hash: str, version: int, previous_hash: str) -> str:
        staged = self.runner.run(["diff", "--cached", "--name-only"], cwd=root).stdout
        message = build_restore_message(version, target_hash, previous_hash, self._now())

        args = ["commit"]
        if not staged:
            # Target tree equals HEAD: still record the restore
            logger.info("Target %s matches HEAD, recording an empty restore commit", target_hash)
            args.append("--allow-empty")

        with commit_message_file(root, message) as msg_file:
            self.runner.run(args + ["-F", str(msg_file)], cwd=root)

        self.runner.run(["reset", "--hard"], cwd=root)
        return get_head_hash(self.runner, root)

    def _rollback(self, root: Path, branch: str, previous_hash: str) -> bool:
        """Return the repository to branch at previous_hash.

        Every step is attempted; failures are logged, never raised.

        Returns:
            True if all steps succeeded.
        """
        steps = []
        if branch and branch != "HEAD":
            steps.append(["checkout", "-f", branch])
        steps.append(["reset", "--hard", previous_hash])
        # Ignored files are never created by a restore, so they are kept
        steps.append(["clean", "-fd"])

        ok = True
        for args in steps:
            try:
                self.runner.run(args, cwd=root)
            except GitError as e:
                logger.error("Failed to recover original state (git %s): %s", " ".join(args), e)
                ok = False
        if ok:
            logger.info("Rolled back to %s on %s", previous_hash, branch)
        return ok

    # ------------------------------------------------------------------
    # Save / discard
    # ------------------------------------------------------------------

    def discard_all(self, repo_root: Optional[Path] = None) -> bool:
        """Discard all uncommitted changes, including untracked files.

        Returns:
            True once the changes are gone.
        """
        try:
            with operation_context("Failed to discard changes"):
                root = Path(repo_root) if repo_root is not None else self.locator.locate()
                self.runner.run(["reset", "--hard", "HEAD"], cwd=root)
                self.runner.run(["clean", "-fd"], cwd=root)
        finally:
            self._notify_mutation()
        return True

    def save_all(self, message: str, repo_root: Optional[Path] = None) -> str:
        """Stage everything and commit it with message.

        Args:
            message: Commit message (may be multi-line).
            repo_root: Repository root (located when omitted).

        Returns:
            Hash of the new commit.

        Raises:
            NoUncommittedChangesError: If the working tree is clean.
        """
        if not message or not message.strip():
            raise ValueError("Commit message must not be empty")

        with operation_context("Failed to save changes"):
            root = Path(repo_root) if repo_root is not None else self.locator.locate()
            has_changes = self.inspector.inspect(root).has_changes
        if not has_changes:
            raise NoUncommittedChangesError(NO_UNCOMMITTED_CHANGES_MESSAGE)

        try:
            with operation_context("Failed to save changes"):
                self.runner.run(["add", "."], cwd=root)
                with commit_message_file(root, message) as msg_file:
                    self.runner.run(["commit", "-F", str(msg_file)], cwd=root)
                return get_head_hash(self.runner, root)
        finally:
            self._notify_mutation()

    def _notify_mutation(self) -> None:
        if self.on_mutation is not None:
            self.on_mutation()
