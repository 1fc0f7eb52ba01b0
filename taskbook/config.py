"""Environment and settings (Pydantic Settings)."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory: ~/.taskbook/data/
_data_dir = Path.home() / ".taskbook" / "data"


class Settings(BaseSettings):
    """Taskbook settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="TASKBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    db_path: Path = _data_dir / "taskbook.db"

    # Identity
    token_ttl_minutes: int = 60 * 24
    password_iterations: int = 240_000

    # Listing
    default_page_size: int = 10
    max_page_size: int = 100

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 3001

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Path = _data_dir / "taskbook.log"


def get_settings() -> Settings:
    """Return application settings (singleton-like)."""
    return Settings()
