"""Database layer - SQLite wrappers for tasks, history, users and tokens."""

from .sqlite import SORTABLE_COLUMNS, SqliteDB
from .users import UserDB

__all__ = ["SORTABLE_COLUMNS", "SqliteDB", "UserDB"]
