# src/taskpilot/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- The extraction model and the store backend are switchable without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKPILOT"

load_dotenv(override=False)


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

    # ---- Storage ----
    data_dir: Path
    store_backend: str  # "sqlite" | "memory"
    tasks_db_path: Path

    # ---- Extraction (OpenAI-compatible) ----
    openai_api_key: Optional[str]
    openai_base_url: str
    extraction_model: str
    extraction_temperature: float
    llm_connect_timeout: float
    llm_read_timeout: float

    # ---- Identity ----
    jwt_secret: Optional[str]
    jwt_algorithm: str
    auth_token: Optional[str]
    console_user: str

    # ---- Presentation ----
    default_sort: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskpilot") or "taskpilot"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskpilot"))
        store_backend = _env(_k("STORE"), "sqlite").strip().lower() or "sqlite"
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        extraction_model = _env(_k("EXTRACTION_MODEL"), "gpt-4o").strip() or "gpt-4o"
        extraction_temperature = _env_float(_k("EXTRACTION_TEMPERATURE"), 0.1)

        connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 30.0)

        jwt_secret = _first_env(_k("JWT_SECRET"), "JWT_SECRET", default=None)
        jwt_algorithm = _env(_k("JWT_ALGORITHM"), "HS256")
        auth_token = _first_env(_k("AUTH_TOKEN"), default=None)
        console_user = _env(_k("CONSOLE_USER"), "local").strip() or "local"

        default_sort = _env(_k("DEFAULT_SORT"), "due_date").strip().lower() or "due_date"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_backend=store_backend,
            tasks_db_path=tasks_db_path,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            extraction_model=extraction_model,
            extraction_temperature=extraction_temperature,
            llm_connect_timeout=connect_timeout,
            llm_read_timeout=max(read_timeout, connect_timeout),
            jwt_secret=jwt_secret,
            jwt_algorithm=jwt_algorithm,
            auth_token=auth_token,
            console_user=console_user,
            default_sort=default_sort,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
