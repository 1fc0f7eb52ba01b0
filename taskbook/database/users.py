"""User and access-token database operations (SQLite).

Tokens are stored by digest only; the raw bearer value is never persisted.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from taskbook.core.dates import iso, parse_stored
from taskbook.models import User


class UserDB:
    """SQLite wrapper for users and auth_tokens tables."""

    def __init__(self, db_path: Path) -> None:
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create users and auth_tokens tables if they do not exist."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    first_name TEXT NOT NULL DEFAULT '',
                    last_name TEXT NOT NULL DEFAULT '',
                    created_at DATETIME NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS auth_tokens (
                    token_hash TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    created_at DATETIME NOT NULL,
                    expires_at DATETIME NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tokens_expiry ON auth_tokens(expires_at)"
            )

    # ---- Users ----

    def insert_user(self, user: User) -> None:
        """Insert a user. Raises sqlite3.IntegrityError on a duplicate email."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, password_hash, first_name, last_name,
                                   created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user.id,
                    user.email,
                    user.password_hash,
                    user.first_name,
                    user.last_name,
                    iso(user.created_at),
                ),
            )

    def get_user(self, user_id: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email,)
            ).fetchone()
        return _row_to_user(row) if row else None

    # ---- Tokens ----

    def insert_token(
        self, token_hash: str, user_id: str, created_at: datetime, expires_at: datetime
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO auth_tokens (token_hash, user_id, created_at, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (token_hash, user_id, iso(created_at), iso(expires_at)),
            )

    def get_token_user(self, token_hash: str, now: datetime) -> Optional[User]:
        """Return the owner of an unexpired token, or None."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT users.* FROM auth_tokens
                JOIN users ON users.id = auth_tokens.user_id
                WHERE auth_tokens.token_hash = ? AND auth_tokens.expires_at > ?
                """,
                (token_hash, iso(now)),
            ).fetchone()
        return _row_to_user(row) if row else None

    def delete_token(self, token_hash: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM auth_tokens WHERE token_hash = ?", (token_hash,)
            )
        return cur.rowcount == 1

    def purge_expired_tokens(self, now: datetime) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM auth_tokens WHERE expires_at <= ?", (iso(now),)
            )
        return cur.rowcount


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row["first_name"] or "",
        last_name=row["last_name"] or "",
        created_at=parse_stored(row["created_at"]),
    )
