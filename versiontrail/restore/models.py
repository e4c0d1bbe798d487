"""Data models for the restore module.

Contains:
- RestoreState: States of the restore state machine
- RestoreResult: Report of one restore attempt
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RestoreState(str, Enum):
    """States a restore passes through. Every run ends back in IDLE."""

    IDLE = "idle"
    VALIDATING_CHANGES = "validating_changes"
    AWAITING_USER_DECISION = "awaiting_user_decision"
    RESTORING = "restoring"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"
    DONE = "done"


class RestoreResult(BaseModel):
    """Outcome of a restore attempt. Never persisted."""

    success: bool
    new_commit_hash: Optional[str] = None
    previous_commit_hash: Optional[str] = None
    branch_name: Optional[str] = None
    backup_branch: Optional[str] = None
    message: Optional[str] = None
