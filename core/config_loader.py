"""Application settings.

All values can be overridden with environment variables or a ``.env`` file
next to the project root.
"""
from __future__ import annotations
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./rota.db"
    SQL_ECHO: bool = False
    # seconds a SQLite connection waits for the write lock
    SQLITE_BUSY_TIMEOUT: float = 30.0

    BACKEND_CORS_ORIGINS: List[str] = []

    LOG_LEVEL: str = "INFO"

    # bounded (shift_id, date) -> assigned count map
    STAFFING_CACHE_SIZE: int = 4096
    UPCOMING_ASSIGNMENTS_LIMIT: int = 3

    model_config = SettingsConfigDict(env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore")


settings = Settings()
