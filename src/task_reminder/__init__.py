"""Personal task reminder CLI with recurring tasks and optional CalDAV sync."""

__version__ = "0.1.0"
