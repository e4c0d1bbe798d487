"""Git command runner.

Contains:
- ProcessResult: stdout/stderr of a finished git command
- ProcessRunner: Run git commands with bounded retry on index lock conflicts
- is_lock_conflict: The retry trigger predicate
- get_lock_file_path: Locate git's index.lock for a repository root
"""

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from versiontrail.git.exceptions import (
    GitCommandError,
    LockConflictError,
    NoExecutableFoundError,
)

logger = logging.getLogger(__name__)

# git prints "Unable to create '<gitdir>/index.lock': File exists." when
# another process holds the index.
LOCK_CONFLICT_MARKER = "index.lock"


@dataclass
class ProcessResult:
    """Output of a successful git command."""

    stdout: str
    stderr: str


def is_lock_conflict(stderr: str) -> bool:
    """Return True when a git failure was caused by a held index lock.

    Args:
        stderr: The stderr text of the failed command.

    Returns:
        True if the failure should trigger the lock retry.
    """
    return LOCK_CONFLICT_MARKER in (stderr or "")


def get_lock_file_path(repo_root: Path) -> Path:
    """Return the path of git's index.lock for a repository root.

    Handles linked worktrees, where ``.git`` is a file pointing at the real
    metadata directory.

    Args:
        repo_root: The root directory of the git repository.

    Returns:
        Path to index.lock (which may not exist).
    """
    dot_git = Path(repo_root) / ".git"
    if dot_git.is_file():
        content = dot_git.read_text(errors="replace").strip()
        if content.startswith("gitdir:"):
            git_dir = Path(content[len("gitdir:"):].strip())
            if not git_dir.is_absolute():
                git_dir = Path(repo_root) / git_dir
            return git_dir / "index.lock"
    return dot_git / "index.lock"


class ProcessRunner:
    """Runs git commands, self-healing stale index locks.

    A failure whose stderr matches :func:`is_lock_conflict` is retried up to
    ``max_retries`` times. Before each retry the stale ``index.lock`` is
    removed and the runner sleeps ``retry_delay * attempt_number`` seconds.
    All other failures are raised immediately.
    """

    def __init__(
        self,
        git_executable: str = "git",
        max_retries: int = 2,
        retry_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.git_executable = git_executable
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def run(
        self,
        args: list[str],
        cwd: Union[str, Path],
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        env: Optional[dict[str, str]] = None,
        strip: bool = True,
    ) -> ProcessResult:
        """Run a git command and return its output.

        Args:
            args: List of arguments to pass to git.
            cwd: Working directory, normally the repository root.
            max_retries: Retry count for lock conflicts (defaults to the runner's).
            retry_delay: Base delay in seconds for the linear backoff.
            env: Extra environment variables for the command.
            strip: Strip surrounding whitespace from stdout. Porcelain output
                must keep its leading status column, so callers parsing it
                pass False.

        Returns:
            ProcessResult with stripped stdout and stderr.

        Raises:
            NoExecutableFoundError: If git is not installed.
            LockConflictError: If the index lock is still held after all retries.
            GitCommandError: If the command fails for any other reason.
        """
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.retry_delay if retry_delay is None else retry_delay
        run_env = {**os.environ, **env} if env else None

        attempt = 0
        while True:
            logger.debug("git %s (cwd=%s, attempt %d)", " ".join(args), cwd, attempt + 1)
            try:
                result = subprocess.run(
                    [self.git_executable] + args,
                    capture_output=True,
                    text=True,
                    check=True,
                    cwd=str(cwd),
                    env=run_env,
                )
            except FileNotFoundError:
                raise NoExecutableFoundError(
                    "Git is not installed or not in PATH. Please install Git and try again."
                )
            except subprocess.CalledProcessError as e:
                stderr = (e.stderr or "").strip()
                if is_lock_conflict(stderr):
                    if attempt < retries:
                        attempt += 1
                        logger.warning(
                            "Git lock conflict (attempt %d/%d), retrying...", attempt, retries
                        )
                        self.remove_lock_file(Path(cwd))
                        self._sleep(delay * attempt)
                        continue
                    logger.error("Git lock still held after %d attempts: git %s", attempt + 1, " ".join(args))
                    raise LockConflictError(args, e.returncode, stderr, attempts=attempt + 1)
                logger.debug("Git command failed: git %s\n%s", " ".join(args), stderr)
                raise GitCommandError(args, e.returncode, stderr, attempts=attempt + 1)

            stdout = result.stdout or ""
            stdout = stdout.strip() if strip else stdout.rstrip("\n")
            stderr = (result.stderr or "").strip()
            if stderr and "warning: " not in stderr:
                logger.debug("Git stderr: %s", stderr)
            return ProcessResult(stdout=stdout, stderr=stderr)

    def remove_lock_file(self, repo_root: Path) -> bool:
        """Remove a stale index.lock.

        Args:
            repo_root: The root directory of the git repository.

        Returns:
            True if a lock file was removed.
        """
        lock_file = get_lock_file_path(repo_root)
        try:
            lock_file.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove %s: %s", lock_file, e)
            return False
        logger.info("Removed stale git lock %s", lock_file)
        return True

    def is_available(self) -> bool:
        """Check whether the git executable can be run."""
        try:
            self.run(["--version"], cwd=".", max_retries=0)
            return True
        except (NoExecutableFoundError, GitCommandError):
            return False

    def version(self) -> str:
        """Get the git version string (e.g. 'git version 2.43.0')."""
        return self.run(["--version"], cwd=".", max_retries=0).stdout
