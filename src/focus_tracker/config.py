# src/focus_tracker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a default.
- Values are read once; tests build their own settings objects.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "FOCUS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# A local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Timer ----
    session_duration_seconds: int
    break_minutes: int
    long_break_minutes: int
    tick_interval_seconds: float
    max_catch_up_ticks: int
    checkpoint_every_seconds: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "focus")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/focus"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "focus.sqlite3")

        # FOCUS_SESSION_SECONDS wins over FOCUS_SESSION_MINUTES (handy for demos).
        session_minutes = _env_int(_k("SESSION_MINUTES"), 25)
        session_duration_seconds = _env_int(_k("SESSION_SECONDS"), session_minutes * 60)

        break_minutes = _env_int(_k("BREAK_MINUTES"), 5)
        long_break_minutes = _env_int(_k("LONG_BREAK_MINUTES"), 15)

        tick_interval_seconds = _env_float(_k("TICK_INTERVAL_SECONDS"), 1.0)
        max_catch_up_ticks = _env_int(_k("MAX_CATCH_UP_TICKS"), 5)
        checkpoint_every_seconds = _env_int(_k("CHECKPOINT_EVERY_SECONDS"), 60)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            session_duration_seconds=session_duration_seconds,
            break_minutes=break_minutes,
            long_break_minutes=long_break_minutes,
            tick_interval_seconds=tick_interval_seconds,
            max_catch_up_ticks=max_catch_up_ticks,
            checkpoint_every_seconds=checkpoint_every_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
