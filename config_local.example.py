# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for secrets. This file should contain only safe overrides.
"""

# Example: run one-shot commands without the interactive console
# CONSOLE_ENABLED = False

# Example: turn calendar sync on (URL and credentials still come from .env)
# CALENDAR_ENABLED = True
