"""Unit tests for the Typer CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from taskbook.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: Any) -> None:
    monkeypatch.setenv("TASKBOOK_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("TASKBOOK_PASSWORD_ITERATIONS", "1000")
    monkeypatch.delenv("TASKBOOK_TOKEN", raising=False)


def _token(email: str = "cli@example.com") -> str:
    result = runner.invoke(app, ["register", email, "--password", "password123"])
    assert result.exit_code == 0, result.output
    assert f"Registered {email}" in result.output
    return result.output.strip().splitlines()[-1]


def _created_id(output: str) -> str:
    line = next(l for l in output.splitlines() if l.startswith("Created: "))
    return line.split("Created: ", 1)[1].strip()


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("taskbook ")


def test_login_prints_token() -> None:
    _token()
    result = runner.invoke(app, ["login", "cli@example.com", "--password", "password123"])
    assert result.exit_code == 0
    assert result.output.strip()


def test_login_with_wrong_password_fails() -> None:
    _token()
    result = runner.invoke(app, ["login", "cli@example.com", "--password", "wrong-one"])
    assert result.exit_code == 1
    assert "Error: Invalid email or password" in result.output


def test_add_list_show_edit_delete(monkeypatch: Any) -> None:
    monkeypatch.setenv("TASKBOOK_TOKEN", _token())

    added = runner.invoke(app, ["add", "Write report", "--due", "2026-05-01"])
    assert added.exit_code == 0, added.output
    task_id = _created_id(added.output)

    listed = runner.invoke(app, ["list"])
    assert listed.exit_code == 0
    assert "Write" in listed.output

    edited = runner.invoke(app, ["edit", task_id, "--title", "Final report", "--status", "DONE"])
    assert edited.exit_code == 0, edited.output
    assert "[DONE] Final report" in edited.output

    shown = runner.invoke(app, ["show", task_id])
    assert shown.exit_code == 0
    assert "Final report" in shown.output
    assert "Write" in shown.output

    deleted = runner.invoke(app, ["delete", task_id])
    assert deleted.output.strip() == "Deleted: Final report"
    assert "No tasks on this page." in runner.invoke(app, ["list"]).output
    assert "Final" in runner.invoke(app, ["list", "--deleted"]).output

    restored = runner.invoke(app, ["delete", task_id])
    assert restored.output.strip() == "Restored: Final report"


def test_show_without_edits() -> None:
    token = _token()
    task_id = _created_id(runner.invoke(app, ["add", "Fresh", "--token", token]).output)
    result = runner.invoke(app, ["show", task_id, "--token", token])
    assert result.exit_code == 0
    assert "No edits yet." in result.output


def test_commands_require_a_valid_token() -> None:
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "Error: Authentication failed" in result.output

    result = runner.invoke(app, ["add", "Nope", "--token", "bogus"])
    assert result.exit_code == 1


def test_validation_errors_exit_nonzero() -> None:
    token = _token()
    result = runner.invoke(app, ["add", "Bad", "--status", "LATER", "--token", token])
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = runner.invoke(app, ["list", "--sort-by", "password", "--token", token])
    assert result.exit_code == 1


def test_other_users_task_is_forbidden() -> None:
    owner = _token("owner@example.com")
    other = _token("other@example.com")
    task_id = _created_id(runner.invoke(app, ["add", "Private", "--token", owner]).output)

    result = runner.invoke(app, ["show", task_id, "--token", other])
    assert result.exit_code == 1
    assert "belongs to another user" in result.output


def test_logout_revokes_token() -> None:
    token = _token()
    result = runner.invoke(app, ["logout", "--token", token])
    assert result.output.strip() == "Logged out."
    assert runner.invoke(app, ["list", "--token", token]).exit_code == 1


def test_seed_creates_demo_tasks() -> None:
    result = runner.invoke(
        app, ["seed", "demo@example.com", "--password", "password123", "--count", "4"]
    )
    assert result.exit_code == 0, result.output
    assert "Seeded 4 tasks for demo@example.com" in result.output
