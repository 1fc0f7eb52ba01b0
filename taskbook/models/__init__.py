"""Domain models."""

from .task import (
    SNAPSHOT_FIELDS,
    TASK_STATUSES,
    Task,
    TaskCreate,
    TaskHistoryEntry,
    TaskPage,
    TaskStatus,
    TaskUpdate,
)
from .user import LoginResult, User, UserRef

__all__ = [
    "SNAPSHOT_FIELDS",
    "TASK_STATUSES",
    "LoginResult",
    "Task",
    "TaskCreate",
    "TaskHistoryEntry",
    "TaskPage",
    "TaskStatus",
    "TaskUpdate",
    "User",
    "UserRef",
]
