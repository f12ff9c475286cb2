"""timelog: record Redmine time entries, queueing them while offline."""

__version__ = "0.1.0"
