"""Commit history retrieval and pagination.

Contains:
- LOG_FORMAT / LOG_DATE_FORMAT: The fixed `git log` format
- parse_log_output: Parse `git log` output into Commit models
- CommitHistoryStore: Paginated, cached access to a repository's history
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

from versiontrail.cache import ResultCache
from versiontrail.git.exceptions import GitCommandError, operation_context
from versiontrail.git.models import Commit, CommitPage
from versiontrail.git.runner import ProcessRunner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%h|%an|%ad|%s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_PAGE_SIZE = 20


class RepositoryPathProvider(Protocol):
    def locate(self) -> Path: ...


def parse_log_output(output: str, total_count: int, offset: int = 0) -> list[Commit]:
    """Parse `git log --pretty=format:%h|%an|%ad|%s` output.

    The i-th line (newest first) of a page starting at ``offset`` gets
    sequence version ``total_count - offset - i``.

    Args:
        output: Raw git log output, one commit per line.
        total_count: Total number of commits reachable from HEAD.
        offset: Number of commits skipped before this page.

    Returns:
        List of Commit, newest first.
    """
    commits = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        # Subjects may contain "|", so only split off the first three fields
        parts = line.split("|", 3)
        parts += [""] * (4 - len(parts))
        hash_, author, date, subject = parts
        commits.append(
            Commit(
                hash=hash_,
                author=author or "Unknown",
                timestamp=date,
                subject=subject or "No subject",
                sequence_version=total_count - offset - len(commits),
            )
        )
    return commits


class CommitHistoryStore:
    """Paginated commit history with a per-query TTL cache.

    Each (repository, offset, limit) query is cached independently.
    :meth:`invalidate` drops everything and must be called after any
    mutating operation.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        locator: RepositoryPathProvider,
        cache: Optional[ResultCache] = None,
    ):
        self.runner = runner
        self.locator = locator
        self.cache = cache if cache is not None else ResultCache(ttl=300.0)

    def _resolve(self, repo_root: Optional[Path]) -> Path:
        return Path(repo_root) if repo_root is not None else self.locator.locate()

    def has_commits(self, repo_root: Path) -> bool:
        """Return False for a repository whose current branch is unborn."""
        try:
            self.runner.run(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo_root)
            return True
        except GitCommandError:
            return False

    def count(self, repo_root: Optional[Path] = None) -> int:
        """Get the total number of commits reachable from HEAD.

        Returns:
            Commit count, 0 for an empty repository.
        """
        root = self._resolve(repo_root)
        try:
            output = self.runner.run(["rev-list", "--count", "HEAD"], cwd=root).stdout
        except GitCommandError:
            if not self.has_commits(root):
                return 0
            raise
        return int(output.strip() or 0)

    def version_of(self, commit_hash: str, repo_root: Optional[Path] = None) -> int:
        """Get the sequence version of an arbitrary commit."""
        root = self._resolve(repo_root)
        output = self.runner.run(["rev-list", "--count", commit_hash], cwd=root).stdout
        return int(output.strip())

    def get_page(
        self,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
        repo_root: Optional[Path] = None,
        use_cache: bool = True,
    ) -> CommitPage:
        """Get a page of history, newest first.

        Args:
            offset: Number of newest commits to skip.
            limit: Maximum number of commits in the page.
            repo_root: Repository root (located when omitted).
            use_cache: Whether to read and write the cache.

        Returns:
            CommitPage. An empty repository yields an empty page.

        Raises:
            GitError: If git fails for any other reason.
        """
        if offset < 0 or limit < 1:
            raise ValueError(f"Invalid page request: offset={offset}, limit={limit}")

        with operation_context("Failed to fetch commits"):
            root = self._resolve(repo_root)
            cache_key = (str(root), offset, limit)
            if use_cache:
                cached = self.cache.get(cache_key)
                if cached is not None:
                    return cached.data

            total_count = self.count(root)
            if total_count == 0:
                commits: list[Commit] = []
            else:
                output = self.runner.run(
                    [
                        "log",
                        f"--skip={offset}",
                        "-n",
                        str(limit),
                        f"--pretty=format:{LOG_FORMAT}",
                        f"--date=format:{LOG_DATE_FORMAT}",
                    ],
                    cwd=root,
                ).stdout
                commits = parse_log_output(output, total_count, offset)

        page = CommitPage(
            commits=commits,
            total_count=total_count,
            offset=offset,
            next_offset=offset + len(commits),
            has_more=offset + len(commits) < total_count,
        )

        if use_cache:
            self.cache.set(cache_key, page)
        logger.debug("Fetched %d commits (offset %d) of %d", len(commits), offset, total_count)
        return page

    def get_details(self, commit_hash: str, repo_root: Optional[Path] = None) -> str:
        """Get full metadata and file-change summary for one commit.

        Never cached.

        Args:
            commit_hash: Commit to show.
            repo_root: Repository root (located when omitted).

        Returns:
            Output of `git show <hash> --stat --pretty=fuller`.
        """
        with operation_context("Error showing commit details"):
            root = self._resolve(repo_root)
            return self.runner.run(["show", commit_hash, "--stat", "--pretty=fuller"], cwd=root).stdout

    def invalidate(self) -> None:
        self.cache.clear()
