# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "DESK_APP_NAME": "App display name (default: desk-todo).",
    "DESK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "DESK_DATA_DIR": "Local data directory (default: .local/desk_todo).",
    "DESK_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "DESK_PREFERENCES_PATH": "Preferences JSON path (default: <data_dir>/preferences.json).",
    "DESK_STORAGE_DIR": "Storage folder used on first run, before /folder is ever called.",
    # Reminders
    "DESK_NOTIFICATIONS_ENABLED": "Allow reminder notifications (true/false, default: true).",
    "DESK_NOTIFICATION_POLL_SECONDS": "How often due reminders are checked (default: 15).",
    # Reports
    "DESK_FIRST_WEEKDAY": "First day of the week for weekly reports, 0=Monday ... 6=Sunday (default: 0).",
    "DESK_REPORT_LANGUAGE": "Language the report is written in (default: English).",
    # LLM (OpenAI-compatible endpoint)
    "DESK_LLM_API_KEY": "API key (falls back to OPENAI_API_KEY). Without it reports run offline.",
    "DESK_LLM_BASE_URL": "Base URL (default: https://dashscope.aliyuncs.com/compatible-mode/v1).",
    "DESK_LLM_MODELS": "Comma/space separated list of models to try in order (default: qwen-max).",
    "DESK_LLM_TEMPERATURE": "Sampling temperature (default: 0.7).",
    "DESK_LLM_MAX_TOKENS": "Max tokens per report (default: 2000).",
    "DESK_HTTP_REFERER": "Optional metadata header.",
    "DESK_APP_TITLE": "Optional metadata header title.",
    # Timeouts
    "DESK_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "DESK_LLM_READ_TIMEOUT_SECONDS": "Read timeout (default: 90).",
    "DESK_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up if no content arrives in time (default: 60).",
}
