# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (auth secret, bootstrap token). Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "PLANNER_APP_NAME": "App display name (default: weekly-planner).",
    "PLANNER_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Identity / document key
    "PLANNER_APP_NAMESPACE": (
        "Namespace segment of the document key (default: default-app-id; legacy alias: __app_id)."
    ),
    "PLANNER_INITIAL_AUTH_TOKEN": (
        "Optional custom token tried before anonymous sign-in (legacy alias: __initial_auth_token)."
    ),
    "PLANNER_AUTH_SECRET": "HMAC secret used to verify custom tokens (token sign-in is off without it).",
    # Paths (gitignored)
    "PLANNER_DATA_DIR": "Local data directory (default: .local/planner).",
    "PLANNER_DB_PATH": "Document store SQLite path (default: <data_dir>/documents.sqlite3).",
    "PLANNER_SESSION_PATH": "Resumable session file (default: <data_dir>/session.json).",
    # Sync tuning
    "PLANNER_POLL_INTERVAL_SECONDS": (
        "How often live sessions look for changes written by other processes (default: 1.0; 0 disables)."
    ),
}
