import asyncio
from collections.abc import Awaitable, Callable

import httpx
import structlog

from parlote.client.api import BackendClient
from parlote.core.modules.usage.models import UsageReport
from parlote.errors import UserError

logger = structlog.get_logger(__name__)


class UsagePump:
    """Reports connected time to the quota ledger on a fixed cadence.

    A failed ping is logged and skipped; the next tick simply tries again.
    """

    def __init__(
        self,
        backend: BackendClient,
        access_token: str,
        on_report: Callable[[UsageReport], Awaitable[None]],
        interval: float = 10.0,
        increment: int = 10,
    ) -> None:
        self._backend = backend
        self._access_token = access_token
        self._on_report = on_report
        self.interval = interval
        self.increment = increment
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        """Stop ticking. Safe to call from inside a tick."""
        self._running = False
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def tick(self) -> UsageReport | None:
        try:
            report = await self._backend.ping_usage(self._access_token, self.increment)
        except (httpx.HTTPError, UserError) as e:
            logger.warning("usage_ping_failed", error=str(e))
            return None
        except Exception:
            logger.exception("usage_ping_failed")
            return None

        await self._on_report(report)
        return report

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval)
            if not self._running:
                break
            await self.tick()
