# src/course_notes/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "NOTES"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Storage (local, ignored by git) ----
    data_dir: Path
    notes_db_path: Path
    storage_key: str

    # ---- Rollover ----
    rollover_enabled: bool
    rollover_interval_seconds: float

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "course-notes").strip() or "course-notes"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/course_notes"))
        notes_db_path = _env_path(_k("DB_PATH"), data_dir / "notes.sqlite3")
        storage_key = _env(_k("STORAGE_KEY"), "course-notes").strip() or "course-notes"

        rollover_enabled = _env_bool(_k("ROLLOVER_ENABLED"), True)
        # The board sweeps every 30 seconds; sub-second intervals only burn CPU.
        rollover_interval_seconds = max(0.5, _env_float(_k("ROLLOVER_INTERVAL_SECONDS"), 30.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            notes_db_path=notes_db_path,
            storage_key=storage_key,
            rollover_enabled=rollover_enabled,
            rollover_interval_seconds=rollover_interval_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
