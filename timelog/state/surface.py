"""
The observable state the delivery engine reads and writes.

Settings and the queue are persisted through the injected key-value store;
status and busy live only in this process.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from ..constants import SETTINGS_KEY
from ..exceptions import StorageError
from ..models import RedmineSettings
from .kv import KeyValueStore
from .observable import Observable
from .queue import RequestQueue

logger = logging.getLogger(__name__)


class SettingsStore:
    """Persisted Redmine URL and API key."""

    def __init__(
        self,
        store: KeyValueStore,
        initial: RedmineSettings | None = None,
        key: str = SETTINGS_KEY,
    ) -> None:
        self._store = store
        self._key = key
        self.value: Observable[RedmineSettings] = Observable(
            initial or RedmineSettings(), name="settings"
        )

    @classmethod
    async def load(cls, store: KeyValueStore, key: str = SETTINGS_KEY) -> "SettingsStore":
        raw = await store.load(key, None)
        if raw is None:
            return cls(store, key=key)
        try:
            initial = RedmineSettings.model_validate(raw)
        except ValidationError as e:
            raise StorageError(f"Stored settings under {key!r} are invalid: {e}") from e
        return cls(store, initial, key=key)

    def get(self) -> RedmineSettings:
        return self.value.get()

    async def update(self, new: RedmineSettings) -> None:
        await self._store.save(self._key, new.model_dump())
        self.value.set(new)
        logger.info("Redmine settings updated (url=%s)", new.redmine_url or "<unset>")


class StateSurface:
    """Bundle of settings, queue, status and busy handed to the engine."""

    def __init__(self, settings: SettingsStore, queue: RequestQueue) -> None:
        self.settings = settings
        self.queue = queue
        self.status: Observable[str] = Observable("", name="status")
        self.busy: Observable[bool] = Observable(False, name="busy")

    @classmethod
    async def load(cls, store: KeyValueStore) -> "StateSurface":
        """Restore the persisted parts from ``store``."""
        return cls(
            settings=await SettingsStore.load(store),
            queue=await RequestQueue.load(store),
        )
