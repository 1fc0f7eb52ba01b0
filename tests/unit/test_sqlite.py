"""Unit tests for the SQLite task/history layer."""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from taskbook.database.sqlite import SqliteDB
from taskbook.models import Task, User

T0 = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)


def _task(task_id: str, user_id: str, **kwargs) -> Task:
    fields = {
        "id": task_id,
        "user_id": user_id,
        "title": f"Task {task_id}",
        "created_at": T0,
        "updated_at": T0,
    }
    fields.update(kwargs)
    return Task(**fields)


def test_init_db_is_idempotent(db: SqliteDB, sample_user: User) -> None:
    """init_db can run twice; tables keep working."""
    db.init_db()
    db.insert_task(_task("a", sample_user.id))
    assert db.get_task("a") is not None


def test_insert_and_get_task(db: SqliteDB, sample_user: User) -> None:
    due = T0 + timedelta(days=3)
    db.insert_task(_task("a", sample_user.id, description="desc", due_date=due))

    got = db.get_task("a")
    assert got is not None
    assert got.title == "Task a"
    assert got.description == "desc"
    assert got.status == "TODO"
    assert got.due_date == due
    assert got.deleted_at is None
    assert got.task_history == []


def test_get_missing_task_returns_none(db: SqliteDB) -> None:
    assert db.get_task("nope") is None


def test_insert_task_requires_existing_user(db: SqliteDB) -> None:
    """Foreign keys are enforced."""
    with pytest.raises(sqlite3.IntegrityError):
        db.insert_task(_task("orphan", "no-such-user"))


def test_update_with_history_snapshots_previous_state(
    db: SqliteDB, sample_user: User
) -> None:
    db.insert_task(_task("a", sample_user.id, title="Old", description="old desc"))
    now = T0 + timedelta(hours=1)

    updated = db.update_with_history(
        "a", sample_user.id, {"title": "New", "status": "DONE"}, entry_id="h1", now=now
    )

    assert updated is not None
    assert updated.title == "New"
    assert updated.status == "DONE"
    assert updated.description == "old desc"
    assert updated.updated_at == now
    assert len(updated.task_history) == 1
    entry = updated.task_history[0]
    assert entry.id == "h1"
    assert entry.task_id == "a"
    assert entry.user_id == sample_user.id
    assert entry.title == "Old"
    assert entry.status == "TODO"
    assert entry.created_at == now


def test_update_with_history_missing_task_writes_nothing(
    db: SqliteDB, sample_user: User
) -> None:
    result = db.update_with_history("ghost", sample_user.id, {"title": "x"}, "h1", T0)
    assert result is None
    with sqlite3.connect(db.path) as conn:
        (n,) = conn.execute("SELECT COUNT(*) FROM task_history").fetchone()
    assert n == 0


def test_update_with_history_rolls_back_on_failure(
    db: SqliteDB, sample_user: User
) -> None:
    """If the task update fails, the history entry is not kept either."""
    db.insert_task(_task("a", sample_user.id, title="Keep"))

    with pytest.raises(sqlite3.IntegrityError):
        # title is NOT NULL, so the UPDATE fails after the history INSERT.
        db.update_with_history("a", sample_user.id, {"title": None}, "h1", T0)

    got = db.get_task("a")
    assert got is not None
    assert got.title == "Keep"
    assert got.task_history == []


def test_update_with_history_rejects_unknown_columns(
    db: SqliteDB, sample_user: User
) -> None:
    db.insert_task(_task("a", sample_user.id))
    with pytest.raises(ValueError):
        db.update_with_history("a", sample_user.id, {"user_id": "other"}, "h1", T0)
    assert db.get_task("a").task_history == []


def test_history_is_chronological(db: SqliteDB, sample_user: User) -> None:
    db.insert_task(_task("a", sample_user.id, title="v1"))
    for i, title in enumerate(["v2", "v3", "v4"], start=1):
        db.update_with_history(
            "a", sample_user.id, {"title": title}, f"h{i}", T0 + timedelta(minutes=i)
        )

    titles = [e.title for e in db.get_task("a").task_history]
    assert titles == ["v1", "v2", "v3"]


def test_toggle_deleted_flips_without_history(db: SqliteDB, sample_user: User) -> None:
    db.insert_task(_task("a", sample_user.id))

    first = db.toggle_deleted("a", T0 + timedelta(minutes=5))
    assert first is not None
    assert first.deleted_at == T0 + timedelta(minutes=5)

    second = db.toggle_deleted("a", T0 + timedelta(minutes=6))
    assert second is not None
    assert second.deleted_at is None
    assert db.get_task("a").task_history == []


def test_toggle_deleted_missing_task(db: SqliteDB) -> None:
    assert db.toggle_deleted("ghost", T0) is None


def test_count_and_list_filter_by_owner_and_deleted(
    db: SqliteDB, sample_user: User, user_db
) -> None:
    other = User(id="user-2", email="other@example.com", password_hash="x")
    user_db.insert_user(other)
    db.insert_task(_task("live", sample_user.id))
    db.insert_task(_task("gone", sample_user.id, deleted_at=T0))
    db.insert_task(_task("theirs", other.id))

    assert db.count_tasks(sample_user.id) == 1
    assert db.count_tasks(sample_user.id, deleted=True) == 1
    assert [t.id for t in db.list_tasks(sample_user.id)] == ["live"]
    assert [t.id for t in db.list_tasks(sample_user.id, deleted=True)] == ["gone"]


def test_list_tasks_sorts_and_paginates(db: SqliteDB, sample_user: User) -> None:
    for title in ["c", "a", "b", "d"]:
        db.insert_task(_task(title, sample_user.id, title=title))

    asc = db.list_tasks(sample_user.id, sort_column="title", descending=False, limit=10)
    assert [t.title for t in asc] == ["a", "b", "c", "d"]

    desc_page2 = db.list_tasks(
        sample_user.id, sort_column="title", descending=True, limit=2, offset=2
    )
    assert [t.title for t in desc_page2] == ["b", "a"]


def test_list_tasks_includes_history(db: SqliteDB, sample_user: User) -> None:
    db.insert_task(_task("a", sample_user.id, title="first"))
    db.update_with_history("a", sample_user.id, {"title": "second"}, "h1", T0)

    (task,) = db.list_tasks(sample_user.id)
    assert [e.title for e in task.task_history] == ["first"]


def test_list_tasks_rejects_unknown_sort_column(db: SqliteDB, sample_user: User) -> None:
    with pytest.raises(ValueError):
        db.list_tasks(sample_user.id, sort_column="title; DROP TABLE tasks")
