# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (API keys, JWT secrets, tokens). Keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKPILOT_APP_NAME": "App display name (default: taskpilot).",
    "TASKPILOT_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Console
    "TASKPILOT_CONSOLE_USER": "Owner id used by the console when no JWT secret is set (default: local).",
    "TASKPILOT_DEFAULT_SORT": "Default /list order: due_date, priority or created (default: due_date).",
    # Store
    "TASKPILOT_STORE": "Task store backend: sqlite or memory (default: sqlite).",
    "TASKPILOT_DATA_DIR": "Local data directory (default: .local/taskpilot).",
    "TASKPILOT_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Extraction (OpenAI-compatible endpoint)
    "TASKPILOT_OPENAI_API_KEY": (
        "API key for extraction (falls back to OPENAI_API_KEY; empty => offline parser)."
    ),
    "TASKPILOT_OPENAI_BASE_URL": "Optional base URL for an OpenAI-compatible endpoint.",
    "TASKPILOT_EXTRACTION_MODEL": "Chat model used for extraction (default: gpt-4o).",
    "TASKPILOT_EXTRACTION_TEMPERATURE": "Sampling temperature for extraction (default: 0.1).",
    "TASKPILOT_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout in seconds (default: 5).",
    "TASKPILOT_LLM_READ_TIMEOUT_SECONDS": "Read timeout in seconds (default: 30).",
    # Identity
    "TASKPILOT_JWT_SECRET": "HS256 secret for bearer tokens (falls back to JWT_SECRET).",
    "TASKPILOT_JWT_ALGORITHM": "JWT algorithm (default: HS256).",
    "TASKPILOT_AUTH_TOKEN": "Bearer token the console signs in with at startup.",
}
