# src/macaron_todo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a default.
- Consumers accept an injected settings object (tests pass a SimpleNamespace).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "MACARON"

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


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
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

    # ---- Console ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path
    export_dir: Path

    # ---- Statistics windows ----
    streak_lookback_days: int
    week_window_days: int
    month_window_days: int

    # ---- Lifecycle ----
    summary_on_exit: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "macaron-todo") or "macaron-todo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/macaron"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "store.sqlite3")
        export_dir = _env_path(_k("EXPORT_DIR"), data_dir / "exports")

        streak_lookback_days = max(1, _env_int(_k("STREAK_LOOKBACK_DAYS"), 30))
        week_window_days = max(1, _env_int(_k("WEEK_WINDOW_DAYS"), 7))
        month_window_days = max(1, _env_int(_k("MONTH_WINDOW_DAYS"), 30))

        summary_on_exit = _env_bool(_k("SUMMARY_ON_EXIT"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_db_path=store_db_path,
            export_dir=export_dir,
            streak_lookback_days=streak_lookback_days,
            week_window_days=week_window_days,
            month_window_days=month_window_days,
            summary_on_exit=summary_on_exit,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
