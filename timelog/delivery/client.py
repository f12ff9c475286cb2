"""
Redmine REST client for time entries.

Transport errors (DNS, refused connection, timeout, offline) propagate as
``httpx.TransportError``; any HTTP response, successful or not, is returned
to the caller for classification.
"""

import logging

import httpx

from ..config import settings
from ..models import QueuedItem

logger = logging.getLogger(__name__)


class RedmineClient:
    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.redmine_timeout
        self._transport = transport

    async def post_time_entry(self, item: QueuedItem) -> httpx.Response:
        """POST one time entry using the URL and API key frozen into ``item``."""
        url = f"{item.redmine_url}/time_entries.json"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                url,
                headers={
                    "Content-Type": "application/json",
                    "X-Redmine-API-Key": item.api_key,
                },
                json={"time_entry": item.payload.to_wire()},
            )
        logger.debug("POST %s -> %d", url, response.status_code)
        return response
