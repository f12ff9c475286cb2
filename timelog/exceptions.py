"""Custom exception hierarchy for timelog."""


class TimelogError(Exception):
    """Base exception for timelog."""
    pass


class StorageError(TimelogError):
    """Raised when the key-value store cannot be read or written."""
    pass


class DuplicateItemError(TimelogError):
    """Raised when a queued item id is already present in the queue."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Queued item {item_id!r} is already in the queue")


class ConfigurationError(TimelogError):
    """Raised when the Redmine URL or API key is missing."""
    pass
