"""Task, history snapshot and page schemas.

Field names are snake_case in Python and camelCase on the wire
(``dueDate``, ``deletedAt``, ``taskHistory``...).
"""

from datetime import datetime
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from taskbook.core.dates import parse_due_date
from taskbook.core.errors import ValidationError

TaskStatus = Literal["TODO", "IN_PROGRESS", "DONE"]
TASK_STATUSES: tuple[str, ...] = get_args(TaskStatus)

# Fields copied into a history entry before every update.
SNAPSHOT_FIELDS = ("title", "description", "status", "due_date", "deleted_at")


class WireModel(BaseModel):
    """Base for models that travel as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _coerce_due_date(value: Any) -> Optional[datetime]:
    try:
        return parse_due_date(value)
    except ValidationError as e:
        raise ValueError(e.message) from None


class TaskHistoryEntry(WireModel):
    """Immutable snapshot of a task taken just before an update."""

    id: str
    task_id: str
    user_id: str = Field(description="Actor who performed the update")
    title: str
    description: Optional[str] = None
    status: TaskStatus
    due_date: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: datetime = Field(description="When the snapshot was taken")


class Task(WireModel):
    """A user's task. deleted_at is None while the task is live."""

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = "TODO"
    due_date: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    task_history: list[TaskHistoryEntry] = Field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class TaskCreate(WireModel):
    """Fields accepted when creating a task."""

    title: str
    description: Optional[str] = None
    status: TaskStatus = "TODO"
    due_date: Optional[datetime] = None
    # Accepted for compatibility with older clients; the owner always comes
    # from the caller's identity.
    user_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be empty")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due(cls, v: Any) -> Optional[datetime]:
        return _coerce_due_date(v)


class TaskUpdate(WireModel):
    """Partial update. Only fields present in the payload are applied.

    deleted_at is an intent flag: true stamps the task deleted now,
    false leaves deleted_at untouched.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    deleted_at: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("title must not be empty")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due(cls, v: Any) -> Optional[datetime]:
        return _coerce_due_date(v)

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> "TaskUpdate":
        for name in ("title", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Return the explicitly provided fields, keyed by Python name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskPage(WireModel):
    """One page of a filtered, sorted task listing."""

    tasks: list[Task]
    total_tasks: int
    total_pages: int
    page: int
    limit: int
