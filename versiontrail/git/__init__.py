"""Git layer for versiontrail.

This package wraps the git executable:
- exceptions: GitError and its subclasses, operation_context
- models: Commit, CommitPage, UncommittedChange, ChangeSet, BranchInfo
- runner: ProcessRunner, ProcessResult, is_lock_conflict
- locator: RepositoryLocator and its detection strategies
- history: CommitHistoryStore, parse_log_output
- status: ChangeSetInspector, classify_status, parse_porcelain_status
- branch: get_current_branch, get_head_hash, backup branch helpers
"""

# Exceptions
from versiontrail.git.exceptions import (
    GitCommandError,
    GitError,
    LockConflictError,
    NoExecutableFoundError,
    NoRepositoryFoundError,
    NoUncommittedChangesError,
    RestoreFailedError,
    operation_context,
)

# Models
from versiontrail.git.models import (
    BranchInfo,
    ChangeSet,
    Commit,
    CommitPage,
    UncommittedChange,
)

# Runner
from versiontrail.git.runner import (
    ProcessResult,
    ProcessRunner,
    get_lock_file_path,
    is_lock_conflict,
)

# Repository detection
from versiontrail.git.locator import (
    DirectProbeStrategy,
    FilesystemScanStrategy,
    HostIntegration,
    HostIntegrationStrategy,
    RepositoryLocator,
    is_repository_root,
    scan_folder_for_repositories,
)

# History
from versiontrail.git.history import (
    CommitHistoryStore,
    parse_log_output,
)

# Status
from versiontrail.git.status import (
    ChangeSetInspector,
    classify_status,
    parse_porcelain_status,
)

# Branch utilities
from versiontrail.git.branch import (
    BackupBranch,
    cleanup_old_backups,
    create_backup_branch,
    get_current_branch,
    get_head_hash,
    list_backup_branches,
)


__all__ = [
    # Exceptions
    "GitCommandError",
    "GitError",
    "LockConflictError",
    "NoExecutableFoundError",
    "NoRepositoryFoundError",
    "NoUncommittedChangesError",
    "RestoreFailedError",
    "operation_context",
    # Models
    "BranchInfo",
    "ChangeSet",
    "Commit",
    "CommitPage",
    "UncommittedChange",
    # Runner
    "ProcessResult",
    "ProcessRunner",
    "get_lock_file_path",
    "is_lock_conflict",
    # Repository detection
    "DirectProbeStrategy",
    "FilesystemScanStrategy",
    "HostIntegration",
    "HostIntegrationStrategy",
    "RepositoryLocator",
    "is_repository_root",
    "scan_folder_for_repositories",
    # History
    "CommitHistoryStore",
    "parse_log_output",
    # Status
    "ChangeSetInspector",
    "classify_status",
    "parse_porcelain_status",
    # Branch
    "BackupBranch",
    "cleanup_old_backups",
    "create_backup_branch",
    "get_current_branch",
    "get_head_hash",
    "list_backup_branches",
]
