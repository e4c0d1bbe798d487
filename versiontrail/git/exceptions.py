"""Git-related exception classes.

Contains all exception classes for Git operations:
- GitError: Base exception for git-related errors
- NoExecutableFoundError: Raised when git is not installed
- NoRepositoryFoundError: Raised when no repository can be located
- GitCommandError: Raised when a git command exits non-zero
- LockConflictError: Raised when git's index lock stays held after retries
- RestoreFailedError: Raised when a restore fails (after rollback was attempted)
- NoUncommittedChangesError: Raised when there is nothing to save
"""

from contextlib import contextmanager
from typing import Iterator, Optional


class GitError(Exception):
    """Custom exception for git-related errors.

    ``operation`` names the user-level action that failed; when set it
    prefixes the message so errors can be shown without a traceback.
    """

    operation: Optional[str] = None

    def __str__(self) -> str:
        message = super().__str__()
        if self.operation:
            return f"{self.operation}: {message}"
        return message


@contextmanager
def operation_context(operation: str) -> Iterator[None]:
    """Tag any GitError raised inside the block with an operation name.

    The exception is re-raised unchanged otherwise, so callers can still
    tell NoExecutableFoundError from NoRepositoryFoundError.
    """
    try:
        yield
    except GitError as e:
        if e.operation is None:
            e.operation = operation
        raise


class NoExecutableFoundError(GitError):
    """Raised when the git executable cannot be found."""

    pass


class NoRepositoryFoundError(GitError):
    """Raised when every repository detection strategy has failed."""

    pass


class GitCommandError(GitError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str, attempts: int = 1):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        self.attempts = attempts
        super().__init__(
            f"Git command failed after {attempts} attempt(s): git {' '.join(command)}\n{stderr}"
        )


class LockConflictError(GitCommandError):
    """Raised when git's index lock is still held after all retries."""

    pass


class RestoreFailedError(GitError):
    """Raised when a restore fails.

    The original cause is kept on ``cause`` (and chained as ``__cause__``);
    ``rolled_back`` tells whether the repository was returned to its
    pre-restore state.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, rolled_back: bool = False):
        self.cause = cause
        self.rolled_back = rolled_back
        super().__init__(message)


class NoUncommittedChangesError(GitError):
    """Raised when there are no uncommitted changes to save."""

    pass
