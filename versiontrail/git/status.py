"""Git status utilities.

Contains:
- classify_status: Turn a two-character porcelain code into a change kind
- parse_porcelain_status: Parse `git status --porcelain -z` output
- ChangeSetInspector: Inspect the uncommitted changes of a repository
"""

import logging
from pathlib import Path

from versiontrail.git.exceptions import GitError
from versiontrail.git.models import ChangeSet, UncommittedChange
from versiontrail.git.runner import ProcessRunner

logger = logging.getLogger(__name__)

# First column: index status
_INDEX_KINDS = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "?": "untracked",
}

# Second column: worktree status
_WORK_TREE_KINDS = {
    "M": "modified",
    "D": "deleted",
    "?": "untracked",
}


def classify_status(status: str) -> str:
    """Classify a porcelain status code.

    The index column gives the primary kind. The worktree column adds a
    secondary kind when it differs from the primary one; an untracked file
    ("??") never gets a second "untracked".

    Args:
        status: Two-character status code, e.g. "AM" or " D".

    Returns:
        Change kind such as "modified", "added, modified" or "unchanged".
    """
    status = status.ljust(2)
    first_char, second_char = status[0], status[1]
    kinds: list[str] = []

    if first_char != " ":
        kinds.append(_INDEX_KINDS.get(first_char, "unknown"))

    secondary = _WORK_TREE_KINDS.get(second_char)
    if secondary and secondary not in kinds and first_char != "?":
        kinds.append(secondary)

    return ", ".join(kinds) if kinds else "unchanged"


def parse_porcelain_status(output: str) -> list[UncommittedChange]:
    """Parse `git status --porcelain -z` (v1) output.

    Entries are NUL-terminated and paths are verbatim (no quoting or escapes).
    A rename or copy entry is followed by one extra field holding the source
    path, which is skipped.

    Args:
        output: Raw porcelain output. Leading spaces must be preserved.

    Returns:
        One UncommittedChange per listed path.
    """
    changes = []
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        entry = fields[i]
        i += 1
        # Entry format: XY filename
        if len(entry) < 4 or entry.startswith("##"):
            continue
        status = entry[:2]
        if "R" in status or "C" in status:
            i += 1
        changes.append(
            UncommittedChange(
                file_name=entry[3:],
                index_status=status[0],
                work_tree_status=status[1],
                change_kind=classify_status(status),
            )
        )
    return changes


class ChangeSetInspector:
    """Reports the uncommitted changes of a working tree.

    Nothing is cached: the result gates a destructive confirmation.
    """

    def __init__(self, runner: ProcessRunner):
        self.runner = runner

    def inspect(self, repo_root: Path) -> ChangeSet:
        """Inspect uncommitted changes.

        Args:
            repo_root: The root directory of the git repository.

        Returns:
            ChangeSet. ``has_changes`` is False only when git reported nothing.

        Raises:
            GitError: If `git status` fails.
        """
        output = self.runner.run(["status", "--porcelain", "-z"], cwd=repo_root, strip=False).stdout
        if not output.strip():
            return ChangeSet(has_changes=False, files=[], summary="")

        files = parse_porcelain_status(output)

        try:
            summary = self.runner.run(["diff", "--stat"], cwd=repo_root).stdout
        except GitError as e:
            logger.debug("diff --stat failed, using file count: %s", e)
            summary = ""
        if not summary:
            summary = f"{len(files)} file(s) changed"

        return ChangeSet(has_changes=True, files=files, summary=summary)

    def has_changes(self, repo_root: Path) -> bool:
        return self.inspect(repo_root).has_changes
