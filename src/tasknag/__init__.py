"""TaskNag: personal task reminders with escalating notifications."""

__version__ = "0.1.0"
