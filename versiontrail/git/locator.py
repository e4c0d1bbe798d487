"""Repository detection.

Contains:
- is_repository_root: Check whether a directory is a git repository root
- scan_folder_for_repositories: Depth-limited filesystem scan
- HostIntegration / HostRepository: Protocols for an editor's git integration
- FilesystemScanStrategy, HostIntegrationStrategy, DirectProbeStrategy
- RepositoryLocator: Try the strategies in order and cache the answer
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence, Union

from versiontrail.cache import ResultCache
from versiontrail.git.exceptions import NoRepositoryFoundError
from versiontrail.git.runner import ProcessRunner

logger = logging.getLogger(__name__)

PRIMARY_REPO_CACHE_KEY = "primary-repo-path"

NO_REPOSITORIES_MESSAGE = (
    "No Git repositories found in the current workspace. Please open a Git repository."
)

# Directory names never descended into while scanning
SKIPPED_DIRECTORIES = frozenset({
    "node_modules",
    "dist",
    "build",
    "__pycache__",
    "venv",
})


def is_repository_root(path: Path) -> bool:
    """Check whether path directly contains git metadata.

    A root holds either a ``.git`` directory or a ``.git`` file whose content
    points at an external metadata directory ("gitdir: ..."), as in linked
    worktrees and submodules.

    Args:
        path: Directory to check.

    Returns:
        True if path is a repository root.
    """
    dot_git = Path(path) / ".git"
    if dot_git.is_dir():
        return True
    if dot_git.is_file():
        try:
            return dot_git.read_text(errors="replace").lstrip().startswith("gitdir:")
        except OSError:
            return False
    return False


def scan_folder_for_repositories(folder: Path, max_depth: int, current_depth: int = 0) -> list[Path]:
    """Recursively scan a folder for repository roots.

    Hidden directories and SKIPPED_DIRECTORIES are not visited. A found root
    is not descended into.

    Args:
        folder: Directory to scan.
        max_depth: Maximum depth below the starting folder.
        current_depth: Depth of ``folder``.

    Returns:
        Repository roots in sorted (deterministic) order.
    """
    folder = Path(folder)
    if is_repository_root(folder):
        return [folder]
    if current_depth >= max_depth:
        return []

    try:
        entries = sorted(os.scandir(folder), key=lambda entry: entry.name)
    except OSError as e:
        logger.debug("Cannot read %s: %s", folder, e)
        return []

    repositories = []
    for entry in entries:
        if entry.name.startswith(".") or entry.name in SKIPPED_DIRECTORIES:
            continue
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
        except OSError:
            continue
        repositories.extend(
            scan_folder_for_repositories(Path(entry.path), max_depth, current_depth + 1)
        )
    return repositories


class HostRepository(Protocol):
    root_path: Union[str, Path]


class HostIntegration(Protocol):
    """Read-only view of an editor's built-in git integration."""

    def is_ready(self) -> bool: ...

    @property
    def repositories(self) -> Sequence[HostRepository]: ...

    def head_branch(self) -> Optional[str]: ...


class FilesystemScanStrategy:
    """Find a repository root by scanning the workspace folders."""

    name = "filesystem-scan"

    def __init__(self, workspace_folders: Sequence[Path], max_depth: int = 2):
        self.workspace_folders = workspace_folders
        self.max_depth = max_depth

    def find_all(self) -> list[Path]:
        repositories = []
        for folder in self.workspace_folders:
            repositories.extend(scan_folder_for_repositories(Path(folder), self.max_depth))
        return repositories

    def find(self) -> Optional[Path]:
        repositories = self.find_all()
        return repositories[0] if repositories else None


class HostIntegrationStrategy:
    """Ask the host editor's git integration for its first repository.

    Waits at most ``wait_timeout`` seconds for the integration to become
    ready, polling every ``poll_interval`` seconds.
    """

    name = "host-integration"

    def __init__(
        self,
        host: Optional[HostIntegration],
        wait_timeout: float = 0.5,
        poll_interval: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.host = host
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def _wait_until_ready(self) -> bool:
        deadline = self._clock() + self.wait_timeout
        while True:
            if self.host.is_ready():
                return True
            if self._clock() >= deadline:
                return False
            self._sleep(self.poll_interval)

    def find(self) -> Optional[Path]:
        if self.host is None:
            return None
        if not self._wait_until_ready():
            logger.debug("Host git integration not ready after %.1fs", self.wait_timeout)
            return None
        repositories = list(self.host.repositories)
        if not repositories or not repositories[0].root_path:
            return None
        return Path(repositories[0].root_path)


class DirectProbeStrategy:
    """Ask git whether the first workspace folder is inside a repository."""

    name = "direct-probe"

    def __init__(self, runner: ProcessRunner, workspace_folders: Sequence[Path]):
        self.runner = runner
        self.workspace_folders = workspace_folders

    def find(self) -> Optional[Path]:
        if not self.workspace_folders:
            return None
        folder = Path(self.workspace_folders[0])
        self.runner.run(["rev-parse", "--git-dir"], cwd=folder, max_retries=0)
        toplevel = self.runner.run(["rev-parse", "--show-toplevel"], cwd=folder, max_retries=0).stdout
        return Path(toplevel) if toplevel else folder


class RepositoryLocator:
    """Locate the active repository root.

    Strategies run in order; the first one returning a path wins. An
    exception in one strategy is logged and the next one is tried. Both
    successes and failures are cached under a single key for ``cache.ttl``
    seconds.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        workspace_folders: Sequence[Path],
        host: Optional[HostIntegration] = None,
        scan_depth: int = 2,
        cache: Optional[ResultCache] = None,
        host_wait_timeout: float = 0.5,
        host_poll_interval: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.workspace_folders = [Path(folder) for folder in workspace_folders]
        self.host = host
        self.cache = cache if cache is not None else ResultCache(ttl=5.0)
        self.scan_strategy = FilesystemScanStrategy(self.workspace_folders, scan_depth)
        self.strategies = [
            self.scan_strategy,
            HostIntegrationStrategy(host, host_wait_timeout, host_poll_interval, sleep=sleep),
            DirectProbeStrategy(runner, self.workspace_folders),
        ]

    def locate(self) -> Path:
        """Get the primary repository root.

        Returns:
            Absolute path of the repository root.

        Raises:
            NoRepositoryFoundError: If every strategy failed (possibly cached).
        """
        cached = self.cache.get(PRIMARY_REPO_CACHE_KEY)
        if cached is not None:
            if cached.is_failure:
                raise NoRepositoryFoundError(cached.error)
            if is_repository_root(cached.data):
                return cached.data
            # Deleted, moved or no longer a repository since it was cached
            self.cache.invalidate(PRIMARY_REPO_CACHE_KEY)

        last_error: Optional[Exception] = None
        for strategy in self.strategies:
            try:
                path = strategy.find()
            except Exception as e:
                logger.debug("Repository strategy %s failed: %s", strategy.name, e)
                last_error = e
                continue
            if path is not None:
                root = Path(path).resolve()
                logger.debug("Repository found by %s: %s", strategy.name, root)
                self.cache.set(PRIMARY_REPO_CACHE_KEY, root)
                return root

        message = NO_REPOSITORIES_MESSAGE
        if last_error is not None:
            message = f"{message}\n{last_error}"
        self.cache.set_error(PRIMARY_REPO_CACHE_KEY, message)
        raise NoRepositoryFoundError(message)

    def find_all(self) -> list[Path]:
        """List every repository root found by the filesystem scan."""
        return [path.resolve() for path in self.scan_strategy.find_all()]

    def has_repository(self) -> bool:
        try:
            self.locate()
            return True
        except NoRepositoryFoundError:
            return False

    def invalidate(self) -> None:
        self.cache.clear()
