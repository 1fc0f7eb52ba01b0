"""[Layer: Presentation] HTTP routes for auth and tasks."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from taskbook.core.engine import Engine
from taskbook.core.services.views import parse_deleted_flag
from taskbook.models import LoginResult, Task, TaskCreate, TaskPage, TaskUpdate, User
from taskbook.models.task import WireModel

from .deps import get_engine, require_user

auth_router = APIRouter(prefix="/auth", tags=["auth"])
tasks_router = APIRouter(prefix="/tasks", tags=["tasks"])


class RegisterRequest(WireModel):
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""


class LoginRequest(WireModel):
    email: str
    password: str


@auth_router.post("/register", response_model=LoginResult, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, engine: Engine = Depends(get_engine)) -> LoginResult:
    return engine.register(body.email, body.password, body.first_name, body.last_name)


@auth_router.post("/login", response_model=LoginResult)
def login(body: LoginRequest, engine: Engine = Depends(get_engine)) -> LoginResult:
    return engine.login(body.email, body.password)


@tasks_router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    user: User = Depends(require_user),
    engine: Engine = Depends(get_engine),
) -> Task:
    return engine.create_task(user.id, body)


@tasks_router.get("", response_model=TaskPage)
def list_tasks(
    page: int = Query(1),
    limit: int = Query(10),
    deleted: Optional[str] = Query("false"),
    sort_by: str = Query("title", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    user: User = Depends(require_user),
    engine: Engine = Depends(get_engine),
) -> TaskPage:
    return engine.list_tasks(
        user.id,
        page=page,
        limit=limit,
        deleted=parse_deleted_flag(deleted),
        sort_by=sort_by,
        sort_order=sort_order,
    )


@tasks_router.get("/{task_id}", response_model=Task)
def get_task(
    task_id: str,
    user: User = Depends(require_user),
    engine: Engine = Depends(get_engine),
) -> Task:
    return engine.get_task(user.id, task_id)


@tasks_router.patch("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    body: TaskUpdate,
    user: User = Depends(require_user),
    engine: Engine = Depends(get_engine),
) -> Task:
    return engine.update_task(user.id, task_id, body)


@tasks_router.delete("/{task_id}", response_model=Task)
def toggle_delete(
    task_id: str,
    user: User = Depends(require_user),
    engine: Engine = Depends(get_engine),
) -> Task:
    """Soft-delete the task, or restore it if it is already deleted."""
    return engine.toggle_delete(user.id, task_id)
