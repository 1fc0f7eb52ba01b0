"""Composition root: wires the stores and services used by the CLI and API."""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from taskbook.config import Settings, get_settings
from taskbook.core.dates import utcnow
from taskbook.core.errors import UnauthorizedError
from taskbook.core.services import AuthService, TaskService, ViewService
from taskbook.database.sqlite import SqliteDB
from taskbook.database.users import UserDB
from taskbook.models import LoginResult, Task, TaskCreate, TaskPage, TaskUpdate, User

logger = logging.getLogger(__name__)


class Engine:
    """Orchestrates identity, task lifecycle and listings. Depends on Config + DB.

    Every task operation takes the caller's user id explicitly; the engine
    holds no per-user state.
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        settings = settings or get_settings()
        self._db_path = Path(db_path or settings.db_path)
        self._users = UserDB(self._db_path)
        self._users.init_db()
        self._db = SqliteDB(self._db_path)
        self._db.init_db()
        self.auth = AuthService(
            self._users,
            token_ttl=timedelta(minutes=settings.token_ttl_minutes),
            password_iterations=settings.password_iterations,
            clock=clock,
        )
        self.tasks = TaskService(self._db, self._users, clock=clock)
        self.views = ViewService(
            self._db,
            default_limit=settings.default_page_size,
            max_limit=settings.max_page_size,
        )
        logger.debug("Engine ready db=%s", self._db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- Identity ----
    def register(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> LoginResult:
        """Register a user and log them in straight away."""
        user = self.auth.register(email, password, first_name, last_name)
        return self.auth.issue_token(user)

    def login(self, email: str, password: str) -> LoginResult:
        return self.auth.login(email, password)

    def logout(self, token: str) -> bool:
        return self.auth.logout(token)

    def authenticate(self, token: Optional[str]) -> User:
        """Resolve a bearer token to a user or raise UnauthorizedError."""
        user = self.auth.resolve_token(token)
        if user is None:
            raise UnauthorizedError("Authentication failed")
        return user

    # ---- Tasks ----
    def create_task(
        self, user_id: str, fields: Union[TaskCreate, Mapping[str, Any]]
    ) -> Task:
        return self.tasks.create(user_id, fields)

    def get_task(self, user_id: str, task_id: str) -> Task:
        return self.tasks.read(user_id, task_id)

    def update_task(
        self, user_id: str, task_id: str, patch: Union[TaskUpdate, Mapping[str, Any]]
    ) -> Task:
        return self.tasks.update(user_id, task_id, patch)

    def toggle_delete(self, user_id: str, task_id: str) -> Task:
        return self.tasks.delete_toggle(user_id, task_id)

    def list_tasks(
        self,
        user_id: str,
        page: int = 1,
        limit: Optional[int] = None,
        deleted: bool = False,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> TaskPage:
        return self.views.list_tasks(
            user_id,
            page=page,
            limit=limit,
            deleted=deleted,
            sort_by=sort_by,
            sort_order=sort_order,
        )
