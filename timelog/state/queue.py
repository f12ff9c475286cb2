"""
Persisted FIFO of entries waiting for delivery.

Insertion order is retry order. Every mutation is a read-modify-write of the
whole list under a lock: the new list is written to the store first and only
published to observers once the write succeeded, so memory and disk never
disagree after a failed save.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from ..constants import QUEUE_KEY
from ..exceptions import DuplicateItemError, StorageError
from ..models import QueuedItem
from .kv import KeyValueStore
from .observable import Observable

logger = logging.getLogger(__name__)


class RequestQueue:
    """Ordered backlog of QueuedItem, persisted in full on every change.

    Usage:
        queue = await RequestQueue.load(store)
        await queue.append(item)
        for item in queue.snapshot():
            ...
            await queue.remove(item.id)
    """

    def __init__(
        self,
        store: KeyValueStore,
        items: list[QueuedItem] | None = None,
        key: str = QUEUE_KEY,
    ) -> None:
        self._store = store
        self._key = key
        self._lock = asyncio.Lock()
        self.items: Observable[tuple[QueuedItem, ...]] = Observable(
            tuple(items or ()), name="queue"
        )

    @classmethod
    async def load(cls, store: KeyValueStore, key: str = QUEUE_KEY) -> "RequestQueue":
        """Restore the queue persisted under ``key`` (empty if none)."""
        raw = await store.load(key, [])
        if not isinstance(raw, list):
            raise StorageError(f"Stored queue under {key!r} is not a list")

        items: list[QueuedItem] = []
        seen: set[str] = set()
        for position, entry in enumerate(raw):
            try:
                item = QueuedItem.model_validate(entry)
            except ValidationError as e:
                raise StorageError(f"Queued item at position {position} is invalid: {e}") from e
            if item.id in seen:
                logger.warning("Dropping duplicate queued item %s found on load", item.id)
                continue
            seen.add(item.id)
            items.append(item)

        if items:
            logger.info("Loaded %d queued entries", len(items))
        return cls(store, items, key=key)

    def __len__(self) -> int:
        return len(self.items.get())

    def is_empty(self) -> bool:
        return not self.items.get()

    def snapshot(self) -> list[QueuedItem]:
        """Point-in-time copy of the queue, head first."""
        return list(self.items.get())

    async def append(self, item: QueuedItem) -> None:
        """Add an item at the tail."""
        async with self._lock:
            current = self.items.get()
            if any(existing.id == item.id for existing in current):
                raise DuplicateItemError(item.id)
            updated = (*current, item)
            await self._persist(updated)
            self.items.set(updated)
            logger.debug("Queued %s (issue #%d), %d pending", item.id, item.issue_id, len(updated))

    async def remove(self, item_id: str) -> bool:
        """Remove the item with ``item_id``. Returns False if it was not queued."""
        async with self._lock:
            current = self.items.get()
            updated = tuple(item for item in current if item.id != item_id)
            if len(updated) == len(current):
                return False
            await self._persist(updated)
            self.items.set(updated)
            logger.debug("Removed %s, %d pending", item_id, len(updated))
            return True

    async def _persist(self, items: tuple[QueuedItem, ...]) -> None:
        await self._store.save(self._key, [item.model_dump(mode="json") for item in items])
