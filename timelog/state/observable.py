"""Observable values: the latest value plus synchronous change notification."""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]


class Observable(Generic[T]):
    """Holds a value and notifies subscribers on every assignment.

    Usage:
        status = Observable("")
        unsubscribe = status.subscribe(print)   # prints "" right away
        status.set("Sending entry...")          # prints again
        unsubscribe()
    """

    def __init__(self, initial: T, name: str = "") -> None:
        self._value = initial
        self._subscribers: list[Subscriber] = []
        self.name = name

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Assign and notify every current subscriber, in subscription order.

        Subscribers are notified even when the value is unchanged.
        """
        self._value = value
        for callback in list(self._subscribers):
            self._notify(callback, value)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback, call it with the current value, return an unsubscriber."""
        self._subscribers.append(callback)
        self._notify(callback, self._value)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _notify(self, callback: Subscriber, value: T) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Subscriber failed for %s", self.name or "observable")
