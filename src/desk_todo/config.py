# src/desk_todo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- The storage folder chosen in the UI lives in Preferences, not here;
  DESK_STORAGE_DIR only seeds it on first run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

ENV_PREFIX = "DESK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


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


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_optional_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    tasks_db_path: Path
    preferences_path: Path
    storage_dir: Optional[Path]

    # ---- Reminders ----
    notifications_enabled: bool
    notification_poll_seconds: float

    # ---- Reports ----
    first_weekday: int
    report_language: str

    # ---- LLM (OpenAI-compatible endpoint) ----
    llm_api_key: Optional[str]
    llm_base_url: str
    llm_models: List[str]
    llm_temperature: float
    llm_max_tokens: int
    extra_headers: Dict[str, str]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default=_env(_k("APP_TITLE"), "desk-todo")) or "desk-todo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/desk_todo"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        preferences_path = _env_path(_k("PREFERENCES_PATH"), data_dir / "preferences.json")
        storage_dir = _env_optional_path(_k("STORAGE_DIR"))

        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        notification_poll_seconds = _env_float(_k("NOTIFICATION_POLL_SECONDS"), 15.0)

        # 0 = Monday ... 6 = Sunday (same numbering as datetime.weekday()).
        first_weekday = _env_int(_k("FIRST_WEEKDAY"), 0) % 7
        report_language = _env(_k("REPORT_LANGUAGE"), "English")

        llm_api_key = _first_env(_k("LLM_API_KEY"), "OPENAI_API_KEY", default=None)
        llm_base_url = _env(_k("LLM_BASE_URL"), "https://dashscope.aliyuncs.com/compatible-mode/v1")
        llm_models = _env_list(_k("LLM_MODELS"), ["qwen-max"])
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.7)
        llm_max_tokens = _env_int(_k("LLM_MAX_TOKENS"), 2000)

        http_referer = _env(_k("HTTP_REFERER"), "")
        title = _env(_k("APP_TITLE"), app_name)
        extra_headers = {"X-Title": title}
        if http_referer:
            extra_headers["HTTP-Referer"] = http_referer

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            preferences_path=preferences_path,
            storage_dir=storage_dir,
            notifications_enabled=notifications_enabled,
            notification_poll_seconds=notification_poll_seconds,
            first_weekday=first_weekday,
            report_language=report_language,
            llm_api_key=llm_api_key,
            llm_base_url=llm_base_url,
            llm_models=llm_models,
            llm_temperature=llm_temperature,
            llm_max_tokens=llm_max_tokens,
            extra_headers=extra_headers,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
