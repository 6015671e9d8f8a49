# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASK_REMINDER_APP_NAME": "App display name (default: task-reminder).",
    "TASK_REMINDER_LOG_LEVEL": "Console logging level (default: INFO).",
    "TASK_REMINDER_DATA_DIR": "Local data directory for the log file (default: .local/task_reminder).",
    # Connectors
    "TASK_REMINDER_CONSOLE_ENABLED": "Run the interactive console after startup (true/false).",
    # Reminders
    "TASK_REMINDER_START_REMINDER_MINUTES": "Minutes before start for the first reminder (default: 5).",
    "TASK_REMINDER_END_REMINDER_MINUTES": "Minutes before end for the second reminder (default: 2).",
    # Calendar (CalDAV)
    "TASK_REMINDER_CALENDAR_ENABLED": "Enable calendar push/sync (true/false).",
    "TASK_REMINDER_CALDAV_URL": "CalDAV server URL.",
    "TASK_REMINDER_CALDAV_USERNAME": "CalDAV username.",
    "TASK_REMINDER_CALDAV_PASSWORD": "CalDAV password or app password.",
    "TASK_REMINDER_CALDAV_CALENDAR": "Calendar name to use (empty => first calendar).",
    "TASK_REMINDER_CALENDAR_PUSH_ON_ADD": "Mirror newly added tasks to the calendar (default: true).",
    "TASK_REMINDER_CALENDAR_LOOKAHEAD_DAYS": "How far ahead `sync` looks for events (default: 30).",
}
