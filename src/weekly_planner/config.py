# src/weekly_planner/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, resolved once at startup and injected.
- No secrets required at import time.
- Every value has a documented default (see config.example.py).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .planner.models import DEFAULT_APP_NAMESPACE

ENV_PREFIX = "PLANNER"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
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

    # ---- Identity / document key ----
    app_namespace: str
    initial_auth_token: str | None
    auth_secret: str | None

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    session_path: Path

    # ---- Sync tuning ----
    poll_interval_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "weekly-planner")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Legacy hosting variables (__app_id, __initial_auth_token) are honoured as fallbacks.
        app_namespace = (
            _first_env(_k("APP_NAMESPACE"), "__app_id", default=DEFAULT_APP_NAMESPACE)
            or DEFAULT_APP_NAMESPACE
        ).strip()
        initial_auth_token = _first_env(_k("INITIAL_AUTH_TOKEN"), "__initial_auth_token", default=None)
        auth_secret = _first_env(_k("AUTH_SECRET"), default=None)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/planner"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "documents.sqlite3")
        session_path = _env_path(_k("SESSION_PATH"), data_dir / "session.json")

        poll_interval_seconds = max(0.0, _env_float(_k("POLL_INTERVAL_SECONDS"), 1.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            app_namespace=app_namespace,
            initial_auth_token=initial_auth_token,
            auth_secret=auth_secret,
            data_dir=data_dir,
            db_path=db_path,
            session_path=session_path,
            poll_interval_seconds=poll_interval_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load .env (without overriding the real environment) and resolve Settings once."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
