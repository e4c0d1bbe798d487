"""Asyncio facade over VersionTrail.

Each coroutine runs the blocking git work in a worker thread with
asyncio.to_thread, so a long scan or restore does not block the host's event
loop. Mutating calls must still be serialized by the caller.
"""

import asyncio
from pathlib import Path
from typing import Optional

from versiontrail.git.branch import BackupBranch
from versiontrail.git.models import BranchInfo, ChangeSet, CommitPage
from versiontrail.restore import ConfirmCallback, RestoreResult
from versiontrail.service import VersionTrail


class AsyncVersionTrail:
    """Coroutine versions of the VersionTrail API."""

    def __init__(self, trail: VersionTrail):
        self.trail = trail

    async def is_git_installed(self) -> bool:
        return await asyncio.to_thread(self.trail.is_git_installed)

    async def locate_repository(self) -> Path:
        return await asyncio.to_thread(self.trail.locate_repository)

    async def has_repository(self) -> bool:
        return await asyncio.to_thread(self.trail.has_repository)

    async def list_commits(self, offset: int = 0, limit: Optional[int] = None) -> CommitPage:
        return await asyncio.to_thread(self.trail.list_commits, offset, limit)

    async def get_commit_details(self, commit_hash: str) -> str:
        return await asyncio.to_thread(self.trail.get_commit_details, commit_hash)

    async def inspect_uncommitted_changes(self) -> ChangeSet:
        return await asyncio.to_thread(self.trail.inspect_uncommitted_changes)

    async def get_current_branch_info(self) -> BranchInfo:
        return await asyncio.to_thread(self.trail.get_current_branch_info)

    async def restore_to_version(
        self,
        commit_hash: str,
        pre_confirmed: bool = False,
        confirm: Optional[ConfirmCallback] = None,
    ) -> RestoreResult:
        # confirm runs in the worker thread
        return await asyncio.to_thread(
            self.trail.restore_to_version, commit_hash, pre_confirmed, confirm
        )

    async def save_all_changes(self, message: str) -> str:
        return await asyncio.to_thread(self.trail.save_all_changes, message)

    async def discard_all_changes(self) -> bool:
        return await asyncio.to_thread(self.trail.discard_all_changes)

    async def create_repository(self, path: Optional[Path] = None) -> Path:
        return await asyncio.to_thread(self.trail.create_repository, path)

    async def list_backups(self) -> list[BackupBranch]:
        return await asyncio.to_thread(self.trail.list_backups)

    async def cleanup_backups(self, days_to_keep: Optional[int] = None) -> list[str]:
        return await asyncio.to_thread(self.trail.cleanup_backups, days_to_keep)

    def clear_all_caches(self) -> None:
        self.trail.clear_all_caches()
