"""Time entry delivery with a persisted offline queue."""

from timelog.delivery.client import RedmineClient
from timelog.delivery.engine import DeliveryEngine

__all__ = ["DeliveryEngine", "RedmineClient"]
