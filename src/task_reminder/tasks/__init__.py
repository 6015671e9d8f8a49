"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Notification) and input validation
- task_store.py: in-memory storage with monotonic ids
- task_scheduler.py: reminder chains (reminders, completion, recurrence)
- task_api.py: small high-level helpers used by the CLI
"""
