"""Commit message helpers for restore and save.

Contains:
- build_restore_message: Message recorded by a restore commit
- commit_message_file: Temp file holding a commit message for `git commit -F`
"""

import os
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from versiontrail.git.runner import get_lock_file_path


def build_restore_message(
    version: int,
    target_hash: str,
    previous_hash: str,
    restored_at: datetime,
) -> str:
    """Build the message of a restore commit.

    Args:
        version: Sequence version of the restored commit.
        target_hash: Hash of the restored commit.
        previous_hash: HEAD before the restore.
        restored_at: Time of the restore.

    Returns:
        Multi-line commit message.
    """
    return (
        f"Restored version {version}\n"
        "\n"
        "This commit restores the repository to a previous state.\n"
        f"Restored commit: {target_hash}\n"
        f"Original commit: {previous_hash}\n"
        f"Restore time: {restored_at.isoformat()}\n"
    )


@contextmanager
def commit_message_file(repo_root: Path, message: str) -> Iterator[Path]:
    """Write message to a temp file inside the git directory.

    The file lives in the git metadata directory so it is never picked up by
    `git add` or removed by `git clean`. It is deleted when the block exits,
    also on error.

    Args:
        repo_root: The root directory of the git repository.
        message: Commit message.

    Yields:
        Path to the message file.
    """
    git_dir = get_lock_file_path(repo_root).parent
    fd, name = tempfile.mkstemp(prefix="COMMIT_EDITMSG_VERSIONTRAIL_", dir=git_dir)
    msg_file = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(message)
        yield msg_file
    finally:
        msg_file.unlink(missing_ok=True)
