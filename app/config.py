from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    database_url: str
    timezone: str
    upcoming_window_days: int
    app_host: str
    app_port: int
    sqlite_busy_timeout_ms: int
    create_schema_on_startup: bool
    log_level: str


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./birthdays.db"),
        timezone=os.getenv("TZ", "Europe/Paris"),
        upcoming_window_days=int(os.getenv("UPCOMING_WINDOW_DAYS", "30")),
        app_host=os.getenv("APP_HOST", "0.0.0.0"),
        app_port=int(os.getenv("APP_PORT", "8000")),
        sqlite_busy_timeout_ms=int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")),
        create_schema_on_startup=_env_flag("CREATE_SCHEMA_ON_STARTUP", "1"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
