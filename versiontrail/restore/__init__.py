"""Restore module for versiontrail.

This package restores earlier versions without rewriting history:
- models: RestoreState, RestoreResult
- message: build_restore_message, commit_message_file
- engine: RestoreEngine (restore state machine, save, discard)
"""

# Models
from versiontrail.restore.models import (
    RestoreResult,
    RestoreState,
)

# Message helpers
from versiontrail.restore.message import (
    build_restore_message,
    commit_message_file,
)

# Engine
from versiontrail.restore.engine import (
    ConfirmCallback,
    RestoreEngine,
)


__all__ = [
    # Models
    "RestoreResult",
    "RestoreState",
    # Message helpers
    "build_restore_message",
    "commit_message_file",
    # Engine
    "ConfirmCallback",
    "RestoreEngine",
]
