"""Delivery engine: send time entries now, or queue them and retry later.

State machine (per engine):
    Idle -> Busy -> Idle

    submit(entry): attempt -> delivered/rejected -> flush the queue
                           -> transient failure  -> append to the queue tail
    drain():       skipped while busy or when the queue is empty, otherwise
                   attempts queued items head first and stops at the first
                   transient failure.

Attempt outcomes:
    2xx                           -> DELIVERED          (removed from queue)
    any other HTTP status         -> REJECTED           (removed from queue)
    transport or unexpected error -> TRANSIENT_FAILURE  (stays queued)

``submit`` does not wait on ``busy``: its own attempt can run while a drain
is in flight. It only skips the backlog flush then, so a queued item is
never sent by two sweeps at once.
"""

from __future__ import annotations

import logging

import httpx

from ..constants import STATUS_MESSAGES
from ..logging_config import log_context
from ..models import Outcome, QueuedItem, TimeEntry
from ..state.surface import StateSurface
from .client import RedmineClient

logger = logging.getLogger(__name__)


class DeliveryEngine:
    """Sends time entries to Redmine with an offline queue behind them.

    Usage:
        state = await StateSurface.load(store)
        engine = DeliveryEngine(state, RedmineClient())
        await engine.submit(entry)   # on user action
        await engine.drain()         # on retry / connectivity restored
    """

    def __init__(self, state: StateSurface, client: RedmineClient | None = None) -> None:
        self.state = state
        self.client = client or RedmineClient()

    async def attempt(self, item: QueuedItem) -> Outcome:
        """Send one item and classify the result. Never touches the queue."""
        issue_id = item.issue_id
        try:
            response = await self.client.post_time_entry(item)
        except httpx.TransportError as e:
            logger.warning(
                "Redmine unreachable: %s: %s", type(e).__name__, e, extra=log_context(item),
            )
            self._set_status("unreachable", issue_id=issue_id)
            return Outcome.TRANSIENT_FAILURE
        except Exception:
            logger.exception("Unexpected error sending time entry", extra=log_context(item))
            self._set_status("internal_error", issue_id=issue_id)
            return Outcome.TRANSIENT_FAILURE

        if response.is_success:
            logger.info("Time entry delivered", extra=log_context(item))
            self._set_status("delivered", issue_id=issue_id)
            return Outcome.DELIVERED

        logger.error(
            "Redmine rejected the entry: HTTP %d %s",
            response.status_code, response.text[:500], extra=log_context(item),
        )
        self._set_status("rejected", issue_id=issue_id, status_code=response.status_code)
        return Outcome.REJECTED

    async def submit(self, entry: TimeEntry) -> Outcome:
        """Send a fresh entry; queue it if Redmine cannot be reached.

        Returns the outcome of the attempt. No exception escapes. ``busy`` is
        cleared on every exit path unless a drain was already running when
        the submit started; that drain owns the flag and the backlog.
        """
        drain_running = self.state.busy.get()
        self.state.busy.set(True)
        self._set_status("sending")
        try:
            try:
                item = QueuedItem.build(entry, self.state.settings.get())
                outcome = await self.attempt(item)
                if outcome is Outcome.TRANSIENT_FAILURE:
                    await self.state.queue.append(item)
                    self._set_status("queued", issue_id=entry.issue_id)
                    return outcome
            except Exception:
                logger.exception("Could not submit time entry", extra={"issue_id": entry.issue_id})
                self._set_status("storage_error", issue_id=entry.issue_id)
                return Outcome.TRANSIENT_FAILURE

            if drain_running:
                logger.debug("Backlog flush skipped: drain in progress")
                return outcome

            # The server answered, so connectivity is up: flush the backlog
            try:
                if await self._flush() and self.state.queue.is_empty():
                    self._set_status("queue_cleared")
            except Exception:
                logger.exception("Backlog flush after submit aborted", extra={"issue_id": entry.issue_id})
                self._set_status("drain_stopped")
            return outcome
        finally:
            if not drain_running:
                self.state.busy.set(False)

    async def drain(self) -> None:
        """Retry queued entries in FIFO order, stopping at the first transient failure."""
        if self.state.busy.get():
            logger.debug("Drain skipped: engine busy")
            return
        if self.state.queue.is_empty():
            return

        self.state.busy.set(True)
        try:
            await self._flush()
        except Exception:
            logger.exception("Drain aborted")
            self._set_status("drain_stopped")
        finally:
            self.state.busy.set(False)

        if self.state.queue.is_empty():
            self._set_status("queue_cleared")

    async def _flush(self) -> int:
        """Walk a snapshot of the queue head first. Returns the number of items attempted."""
        pending = self.state.queue.snapshot()
        if not pending:
            return 0

        self._set_status("retrying", count=len(pending))
        attempted = 0
        for item in pending:
            self._set_status("retrying_item", issue_id=item.issue_id)
            outcome = await self.attempt(item)
            attempted += 1

            if outcome is Outcome.TRANSIENT_FAILURE:
                self._set_status("drain_stopped")
                logger.info("Queue flush stopped, %d left", len(self.state.queue), extra=log_context(item))
                break

            await self.state.queue.remove(item.id)
            if outcome is Outcome.DELIVERED:
                self._set_status("retry_delivered", issue_id=item.issue_id)

        return attempted

    def _set_status(self, key: str, **fields) -> None:
        self.state.status.set(STATUS_MESSAGES[key].format(**fields))
