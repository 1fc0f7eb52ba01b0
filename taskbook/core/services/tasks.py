"""Task lifecycle operations and the write side of the history log."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from taskbook.core.dates import utcnow
from taskbook.core.errors import ForbiddenError, NotFoundError, from_pydantic
from taskbook.database.sqlite import SqliteDB
from taskbook.database.users import UserDB
from taskbook.models import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def validate_input(model: type[M], value: Union[M, Mapping[str, Any]]) -> M:
    """Coerce a mapping into model, raising our ValidationError on failure."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as e:
        raise from_pydantic(e) from e


class TaskService:
    """Encapsulates create/read/update/delete-toggle on a user's tasks.

    Only update() writes history: it snapshots the task as it was before the
    patch. create() and delete_toggle() never touch the history log.
    """

    def __init__(
        self,
        db: SqliteDB,
        users: UserDB,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._db = db
        self._users = users
        self._clock = clock

    def create(self, owner_id: str, fields: Union[TaskCreate, Mapping[str, Any]]) -> Task:
        data = validate_input(TaskCreate, fields)
        if self._users.get_user(owner_id) is None:
            raise NotFoundError(f"User with ID {owner_id} not found")

        now = self._clock()
        task = Task(
            id=str(uuid.uuid4()),
            user_id=owner_id,
            title=data.title,
            description=data.description,
            status=data.status,
            due_date=data.due_date,
            deleted_at=None,
            created_at=now,
            updated_at=now,
        )
        self._db.insert_task(task)
        logger.info("Task %s created for user %s", task.id, owner_id)
        return task

    def read(self, owner_id: str, task_id: str) -> Task:
        task = self._db.get_task(task_id)
        return self._check_access(owner_id, task_id, task)

    def update(
        self,
        owner_id: str,
        task_id: str,
        patch: Union[TaskUpdate, Mapping[str, Any]],
    ) -> Task:
        """Record the pre-update snapshot, then apply the patch.

        Raises:
            ValidationError: If the patch is malformed (checked first).
            NotFoundError: If the task does not exist; nothing is written.
            ForbiddenError: If the task belongs to another user.
        """
        data = validate_input(TaskUpdate, patch)
        current = self._db.get_task(task_id, with_history=False)
        self._check_access(owner_id, task_id, current)

        now = self._clock()
        changes = data.changes()
        if changes.pop("deleted_at", None):
            changes["deleted_at"] = now

        updated = self._db.update_with_history(
            task_id,
            actor_id=owner_id,
            changes=changes,
            entry_id=str(uuid.uuid4()),
            now=now,
        )
        if updated is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        logger.info(
            "Task %s updated by %s (fields: %s)",
            task_id,
            owner_id,
            ", ".join(sorted(changes)) or "none",
        )
        return updated

    def delete_toggle(self, owner_id: str, task_id: str) -> Task:
        """Soft-delete a live task or restore a deleted one."""
        current = self._db.get_task(task_id, with_history=False)
        self._check_access(owner_id, task_id, current)

        toggled = self._db.toggle_deleted(task_id, self._clock())
        if toggled is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        logger.info(
            "Task %s %s by %s",
            task_id,
            "soft-deleted" if toggled.is_deleted else "restored",
            owner_id,
        )
        return toggled

    @staticmethod
    def _check_access(owner_id: str, task_id: str, task: Optional[Task]) -> Task:
        if task is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        if task.user_id != owner_id:
            raise ForbiddenError(f"Task with ID {task_id} belongs to another user")
        return task
