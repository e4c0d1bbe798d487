"""Git branch and commit utilities.

Contains:
- get_current_branch: Get the current branch name
- get_head_hash: Get the full hash of HEAD
- BackupBranch: A backup branch and its creation date
- create_backup_branch: Create a backup branch without touching the worktree
- list_backup_branches: List backup branches, newest first
- cleanup_old_backups: Delete expired or surplus backup branches
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from versiontrail.git.exceptions import GitError
from versiontrail.git.runner import ProcessRunner

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_PREFIX = "versiontrail/backup/"
BACKUP_NAME_PREFIX = "pre-restore-"
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"


def get_current_branch(runner: ProcessRunner, repo_root: Path) -> str:
    """Get the current branch name.

    Returns:
        The branch name, or 'HEAD' in detached state.
    """
    return runner.run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=repo_root).stdout


def get_head_hash(runner: ProcessRunner, repo_root: Path) -> str:
    """Get the full commit hash of HEAD."""
    return runner.run(["rev-parse", "HEAD"], cwd=repo_root).stdout


@dataclass
class BackupBranch:
    """A backup branch created before a restore."""

    name: str
    created_at: datetime


def create_backup_branch(
    runner: ProcessRunner,
    repo_root: Path,
    commit_hash: str,
    prefix: str = DEFAULT_BACKUP_PREFIX,
    now: Optional[datetime] = None,
) -> str:
    """Create a backup branch pointing at commit_hash.

    Uses `git branch <name> <hash>`, so neither HEAD nor the working tree
    changes.

    Args:
        runner: Git runner.
        repo_root: The root directory of the git repository.
        commit_hash: Commit the backup branch points at.
        prefix: Branch name prefix for backups.
        now: Creation time used in the name (defaults to the current UTC time).

    Returns:
        Name of the backup branch.
    """
    now = now or datetime.now(timezone.utc)
    branch_name = f"{prefix}{BACKUP_NAME_PREFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}"
    runner.run(["branch", branch_name, commit_hash], cwd=repo_root)
    logger.info("Created backup branch %s at %s", branch_name, commit_hash)
    return branch_name


def _parse_backup_time(name: str, prefix: str, creator_date: str) -> Optional[datetime]:
    """Get a backup's creation time.

    The timestamp encoded in the branch name is preferred: creatordate of a
    branch is the date of the commit it points at, not of the branch.
    """
    stamp = name[len(prefix):]
    if stamp.startswith(BACKUP_NAME_PREFIX):
        try:
            parsed = datetime.strptime(stamp[len(BACKUP_NAME_PREFIX):], BACKUP_TIMESTAMP_FORMAT)
            return parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    # Older git prints +00:00, newer git prints Z for UTC
    if creator_date.endswith("Z"):
        creator_date = creator_date[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(creator_date)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


def list_backup_branches(
    runner: ProcessRunner,
    repo_root: Path,
    prefix: str = DEFAULT_BACKUP_PREFIX,
) -> list[BackupBranch]:
    """List backup branches, newest first.

    Args:
        runner: Git runner.
        repo_root: The root directory of the git repository.
        prefix: Branch name prefix for backups.

    Returns:
        List of BackupBranch.
    """
    output = runner.run(
        [
            "for-each-ref",
            "--format=%(refname:short) %(creatordate:iso-strict)",
            f"refs/heads/{prefix}",
        ],
        cwd=repo_root,
    ).stdout

    backups = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        name, _, date_str = line.partition(" ")
        created_at = _parse_backup_time(name, prefix, date_str.strip())
        if created_at is None:
            logger.warning("Skipping backup branch %s with unreadable date %r", name, date_str)
            continue
        backups.append(BackupBranch(name=name, created_at=created_at))

    backups.sort(key=lambda b: b.created_at, reverse=True)
    return backups


def cleanup_old_backups(
    runner: ProcessRunner,
    repo_root: Path,
    days_to_keep: int = 7,
    max_backups: Optional[int] = None,
    prefix: str = DEFAULT_BACKUP_PREFIX,
    now: Optional[datetime] = None,
) -> list[str]:
    """Delete backup branches older than days_to_keep, or beyond max_backups.

    Deletion failures are logged and skipped.

    Args:
        runner: Git runner.
        repo_root: The root directory of the git repository.
        days_to_keep: Retention in days.
        max_backups: Keep at most this many of the newest backups.
        prefix: Branch name prefix for backups.
        now: Reference time (defaults to the current UTC time).

    Returns:
        Names of the deleted branches.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days_to_keep)

    deleted = []
    for index, backup in enumerate(list_backup_branches(runner, repo_root, prefix)):
        expired = backup.created_at < cutoff
        surplus = max_backups is not None and index >= max_backups
        if not (expired or surplus):
            continue
        try:
            runner.run(["branch", "-D", backup.name], cwd=repo_root)
            deleted.append(backup.name)
        except GitError as e:
            logger.warning("Failed to delete old backup branch %s: %s", backup.name, e)

    return deleted
