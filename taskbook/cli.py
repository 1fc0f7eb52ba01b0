"""[Layer: Presentation] Typer CLI Commands."""

from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version as get_package_version
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from taskbook.config import get_settings
from taskbook.core.engine import Engine
from taskbook.core.errors import TaskbookError
from taskbook.core.seed import seed_demo
from taskbook.models import Task, TaskPage

console = Console()

app = typer.Typer(
    name="taskbook",
    help="Personal task tracker with soft delete and full edit history.",
)

_TOKEN_OPTION = typer.Option(
    None,
    "--token",
    envvar="TASKBOOK_TOKEN",
    help="Bearer token from 'taskbook login' (or set TASKBOOK_TOKEN).",
)


def _get_version() -> str:
    """Get version from package metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("taskbook")
    except PackageNotFoundError:
        return "0.0.0-dev"


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"taskbook {_get_version()}")
        raise typer.Exit()


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Turn domain errors into a one-line message and exit code 1."""
    try:
        yield
    except TaskbookError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from e


def _fmt_dt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _print_task(task: Task) -> None:
    state = "deleted" if task.is_deleted else "live"
    typer.echo(f"{task.id}  [{task.status}] {task.title} ({state})")
    if task.description:
        typer.echo(f"  {task.description}")
    if task.due_date:
        typer.echo(f"  due {_fmt_dt(task.due_date)}")


def _print_page(page: TaskPage) -> None:
    table = Table(title=f"Tasks (page {page.page}/{max(page.total_pages, 1)}, {page.total_tasks} total)")
    table.add_column("ID", overflow="fold")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Due")
    table.add_column("Edits", justify="right")
    for t in page.tasks:
        table.add_row(t.id, t.title, t.status, _fmt_dt(t.due_date), str(len(t.task_history)))
    console.print(table)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Taskbook command-line interface."""


# ---- Identity ----


@app.command()
def register(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    first_name: str = typer.Option("", "--first-name"),
    last_name: str = typer.Option("", "--last-name"),
) -> None:
    """Create an account and print an access token."""
    with _reported_errors():
        result = Engine().register(email, password, first_name, last_name)
    typer.echo(f"Registered {result.user.email}")
    typer.echo(result.access_token)


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Log in and print an access token (export it as TASKBOOK_TOKEN)."""
    with _reported_errors():
        result = Engine().login(email, password)
    typer.echo(result.access_token)


@app.command()
def logout(token: Optional[str] = _TOKEN_OPTION) -> None:
    """Revoke an access token."""
    if not token:
        typer.echo("Error: no token given", err=True)
        raise typer.Exit(1)
    revoked = Engine().logout(token)
    typer.echo("Logged out." if revoked else "Token was not active.")


# ---- Tasks ----


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    status: str = typer.Option("TODO", "--status", "-s", help="TODO, IN_PROGRESS or DONE"),
    due: Optional[str] = typer.Option(None, "--due", help="ISO date or date-time"),
    token: Optional[str] = _TOKEN_OPTION,
) -> None:
    """Create a task."""
    with _reported_errors():
        engine = Engine()
        user = engine.authenticate(token)
        task = engine.create_task(
            user.id,
            {"title": title, "description": description, "status": status, "due_date": due},
        )
    typer.echo(f"Created: {task.id}")


@app.command(name="list")
def list_cmd(
    page: int = typer.Option(1, "--page", "-p"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n"),
    deleted: bool = typer.Option(False, "--deleted", help="Show soft-deleted tasks"),
    sort_by: str = typer.Option("createdAt", "--sort-by"),
    order: str = typer.Option("desc", "--order"),
    token: Optional[str] = _TOKEN_OPTION,
) -> None:
    """List live (or deleted) tasks, one page at a time."""
    with _reported_errors():
        engine = Engine()
        user = engine.authenticate(token)
        result = engine.list_tasks(
            user.id, page=page, limit=limit, deleted=deleted, sort_by=sort_by, sort_order=order
        )
    if not result.tasks:
        typer.echo("No tasks on this page.")
        return
    _print_page(result)


@app.command()
def show(
    task_id: str = typer.Argument(...),
    token: Optional[str] = _TOKEN_OPTION,
) -> None:
    """Show one task and its previous versions."""
    with _reported_errors():
        engine = Engine()
        user = engine.authenticate(token)
        task = engine.get_task(user.id, task_id)
    _print_task(task)
    if not task.task_history:
        typer.echo("No edits yet.")
        return
    table = Table(title="History (state before each edit)")
    table.add_column("Recorded")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Due")
    table.add_column("Deleted")
    for entry in task.task_history:
        table.add_row(
            _fmt_dt(entry.created_at),
            entry.title,
            entry.status,
            _fmt_dt(entry.due_date),
            _fmt_dt(entry.deleted_at),
        )
    console.print(table)


@app.command()
def edit(
    task_id: str = typer.Argument(...),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    due: Optional[str] = typer.Option(None, "--due"),
    token: Optional[str] = _TOKEN_OPTION,
) -> None:
    """Edit a task. The previous version is kept in its history."""
    patch = {
        key: value
        for key, value in (
            ("title", title),
            ("description", description),
            ("status", status),
            ("due_date", due),
        )
        if value is not None
    }
    with _reported_errors():
        engine = Engine()
        user = engine.authenticate(token)
        task = engine.update_task(user.id, task_id, patch)
    _print_task(task)


@app.command()
def delete(
    task_id: str = typer.Argument(...),
    token: Optional[str] = _TOKEN_OPTION,
) -> None:
    """Soft-delete a task, or restore it if it is already deleted."""
    with _reported_errors():
        engine = Engine()
        user = engine.authenticate(token)
        task = engine.toggle_delete(user.id, task_id)
    typer.echo(f"{'Deleted' if task.is_deleted else 'Restored'}: {task.title}")


# ---- Maintenance ----


@app.command()
def seed(
    email: str = typer.Argument(..., help="Demo account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    count: int = typer.Option(20, "--count", "-c"),
) -> None:
    """Create a demo user with sample tasks."""
    with _reported_errors():
        user, tasks = seed_demo(Engine(), email, password, count=count)
    typer.echo(f"Seeded {len(tasks)} tasks for {user.email}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from taskbook.api import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(Engine(settings=settings)),
        host=host or settings.host,
        port=port or settings.port,
    )


@app.command()
def version() -> None:
    """Show Taskbook version."""
    typer.echo(f"taskbook {_get_version()}")
