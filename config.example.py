# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "NOTES_APP_NAME": "App display name (default: course-notes).",
    "NOTES_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "NOTES_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Storage (gitignored)
    "NOTES_DATA_DIR": "Local data directory (default: .local/course_notes).",
    "NOTES_DB_PATH": "NoteStore SQLite path (default: <data_dir>/notes.sqlite3).",
    "NOTES_STORAGE_KEY": "Key the note collection is stored under (default: course-notes).",
    # Rollover
    "NOTES_ROLLOVER_ENABLED": "Run the background rollover sweep (true/false, default: true).",
    "NOTES_ROLLOVER_INTERVAL_SECONDS": "Seconds between sweeps (default: 30, minimum 0.5).",
}
