"""Demo data: one user with a spread of tasks across statuses and due dates."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from taskbook.core.dates import utcnow
from taskbook.core.errors import UnauthorizedError
from taskbook.models import Task, TaskStatus, User

if TYPE_CHECKING:
    from taskbook.core.engine import Engine

logger = logging.getLogger(__name__)


def seed_status(index: int, count: int) -> TaskStatus:
    """First half TODO, next quarter IN_PROGRESS, remainder DONE (1-based index)."""
    if index > count * 3 // 4:
        return "DONE"
    if index > count // 2:
        return "IN_PROGRESS"
    return "TODO"


def seed_demo(
    engine: "Engine",
    email: str,
    password: str,
    count: int = 20,
    now: Optional[datetime] = None,
) -> tuple[User, list[Task]]:
    """Register (or reuse) a demo user and create count tasks for them.

    Due dates run from (count // 2) days in the past into the future, one
    day apart.
    """
    current = now or utcnow()
    try:
        user = engine.auth.register(email, password, "Test", "User")
    except UnauthorizedError:
        user = engine.auth.validate_user(email, password)
        if user is None:
            raise
        logger.info("Seeding into existing user %s", user.id)

    tasks: list[Task] = []
    for i in range(1, count + 1):
        task = engine.create_task(
            user.id,
            {
                "title": f"Task {i}",
                "description": f"This is the description for task {i}",
                "status": seed_status(i, count),
                "due_date": current + timedelta(days=i - count // 2),
            },
        )
        tasks.append(task)
    logger.info("Seeded %d tasks for user %s", len(tasks), user.id)
    return user, tasks
