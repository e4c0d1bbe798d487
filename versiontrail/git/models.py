"""Pydantic models for data read from git.

Contains:
- Commit: One history entry with its sequence version
- CommitPage: A page of history plus pagination info
- UncommittedChange: One entry of `git status --porcelain -z`
- ChangeSet: All uncommitted changes of a working tree
- BranchInfo: Current branch name and version count
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    """A commit as shown in the history list."""

    model_config = ConfigDict(frozen=True)

    hash: str
    author: str
    timestamp: str  # "YYYY-MM-DD HH:MM:SS", author date
    subject: str
    sequence_version: int  # 1 = first commit of the repository


class CommitPage(BaseModel):
    """A slice of history, newest first."""

    commits: list[Commit]
    total_count: int
    offset: int
    next_offset: int
    has_more: bool


class UncommittedChange(BaseModel):
    """A single file reported by `git status --porcelain -z`."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    index_status: str
    work_tree_status: str
    change_kind: str  # e.g. "modified" or "added, modified"

    @property
    def status(self) -> str:
        """The raw two-character porcelain code."""
        return f"{self.index_status}{self.work_tree_status}"


class ChangeSet(BaseModel):
    """Uncommitted changes of the working tree."""

    has_changes: bool
    files: list[UncommittedChange] = []
    summary: str = ""


class BranchInfo(BaseModel):
    """Current branch and its version count."""

    branch: Optional[str] = None
    version: Optional[int] = None
