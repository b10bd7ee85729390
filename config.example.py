# config.example.py

"""
Documentation-only module (safe to commit).

Configuration is read from environment variables, optionally via a local .env file
(gitignored). Every variable is optional; see src/macaron_todo/config.py for defaults.
"""

ENV_VARS = {
    # App / logging
    "MACARON_APP_NAME": "App display name (default: macaron-todo).",
    "MACARON_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Console
    "MACARON_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "MACARON_DATA_DIR": "Local data directory, also holds macaron.log (default: .local/macaron).",
    "MACARON_STORE_DB_PATH": "Key-value SQLite path (default: <data_dir>/store.sqlite3).",
    "MACARON_EXPORT_DIR": "Default /export target directory (default: <data_dir>/exports).",
    # Statistics
    "MACARON_STREAK_LOOKBACK_DAYS": "How many days back /streak looks (default: 30).",
    "MACARON_WEEK_WINDOW_DAYS": "Window of /history (default: 7).",
    "MACARON_MONTH_WINDOW_DAYS": "Window of /history month (default: 30).",
    # Lifecycle
    "MACARON_SUMMARY_ON_EXIT": "Record today's daily summary when the app exits (default: true).",
}
