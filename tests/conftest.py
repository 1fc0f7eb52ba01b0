"""Global fixtures: temp DB, stores, engine and registered users."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from taskbook.config import Settings
from taskbook.core.engine import Engine
from taskbook.database.sqlite import SqliteDB
from taskbook.database.users import UserDB
from taskbook.models import User

# Keep password hashing cheap in tests.
TEST_ITERATIONS = 1_000


class FakeClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def temp_db_path() -> Path:
    """Temporary SQLite path (cleaned up after test)."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    if path.exists():
        path.unlink(missing_ok=True)


@pytest.fixture
def settings(temp_db_path: Path) -> Settings:
    return Settings(
        db_path=temp_db_path,
        log_file=temp_db_path.with_suffix(".log"),
        password_iterations=TEST_ITERATIONS,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_db(temp_db_path: Path) -> UserDB:
    """Initialized UserDB with temp path."""
    d = UserDB(temp_db_path)
    d.init_db()
    return d


@pytest.fixture
def db(temp_db_path: Path, user_db: UserDB) -> SqliteDB:
    """Initialized SqliteDB (users table created first for foreign keys)."""
    d = SqliteDB(temp_db_path)
    d.init_db()
    return d


@pytest.fixture
def sample_user(user_db: UserDB) -> User:
    """Single stored user for store-level tests."""
    user = User(
        id="user-1",
        email="test@example.com",
        first_name="Test",
        last_name="User",
        password_hash="not-a-real-hash",
    )
    user_db.insert_user(user)
    return user


@pytest.fixture
def engine(settings: Settings, clock: FakeClock) -> Engine:
    """Engine over the temp database with a deterministic clock."""
    return Engine(settings=settings, clock=clock)


@pytest.fixture
def alice(engine: Engine) -> User:
    return engine.auth.register("alice@example.com", "password123", "Alice", "A")


@pytest.fixture
def bob(engine: Engine) -> User:
    return engine.auth.register("bob@example.com", "password456", "Bob", "B")
