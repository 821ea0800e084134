import asyncio
from typing import Any

import httpx
import structlog

from parlote.client.api import BackendClient
from parlote.errors import UserError

logger = structlog.get_logger(__name__)


class EventLogBuffer:
    """Collects observed events for one session and ships them to the log sink in batches.

    ``flush`` never blocks the caller: the batch is posted by a background task whose
    failures are logged and dropped.
    """

    def __init__(self, backend: BackendClient, session_id: str, situation_id: str | None) -> None:
        self._backend = backend
        self.session_id = session_id
        self.situation_id = situation_id
        self._events: list[Any] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._events)

    def push(self, event: Any) -> None:
        self._events.append(event)

    def flush(self) -> asyncio.Task[None] | None:
        """Dispatch everything buffered so far. Empty buffers are never sent."""
        if not self._events:
            return None

        events, self._events = self._events, []
        task = asyncio.create_task(self._send(events))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for batches already dispatched."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def _send(self, events: list[Any]) -> None:
        try:
            await self._backend.append_log(self.session_id, self.situation_id, events)
        except (httpx.HTTPError, UserError) as e:
            logger.warning("event_log_flush_failed", session_id=self.session_id, event_count=len(events), error=str(e))
