from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

from parlote.config import Config
from parlote.core.core import Core
from parlote.core.modules.eventlog.models import EventLogEntry
from parlote.core.modules.identity.models import AccessToken, Identity
from parlote.core.modules.realtime.models import SessionDescriptor
from parlote.core.modules.situation.models import Situation, SituationUpdate
from parlote.core.modules.usage.models import UsageReport
from parlote.errors import QuotaExceededError

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, authenticates callers before delegating to Core."""

    def __init__(self, config: Config, http_transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._core = Core(config, http_transport)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def authenticate(self, access_token: AccessToken | None) -> Identity:
        """Verify the caller's access token."""
        return await self._core.services.identity.verify_token(access_token)

    async def create_realtime_session(
        self, access_token: AccessToken | None, situation_id: str, prompt_override: str | None
    ) -> SessionDescriptor:
        """Admit the caller and mint an ephemeral realtime credential.

        Checks run cheapest first and stop at the first failure: configuration,
        identity, remaining quota, situation lookup, then the provider call.
        Issuing a session does not consume quota; pings do.
        """
        self._core.services.realtime.ensure_configured()
        identity = await self.authenticate(access_token)

        usage = await self._core.services.usage.get_usage(identity.id)
        remaining = self._core.services.usage.remaining(usage)
        if remaining <= 0:
            logger.info("session_refused_quota", user_id=identity.id, used_seconds=usage.used_seconds)
            raise QuotaExceededError

        situation = self._core.services.situation.get_situation(situation_id)
        return await self._core.services.realtime.issue_session(situation, prompt_override, remaining)

    async def record_usage(self, access_token: AccessToken | None, seconds: float) -> UsageReport:
        """Add connected seconds to the caller's daily counter."""
        identity = await self.authenticate(access_token)
        usage = await self._core.services.usage.increment(identity.id, seconds)
        return UsageReport(used_seconds=usage.used_seconds, remaining_seconds=self._core.services.usage.remaining(usage))

    async def append_event_log(self, session_id: str | None, situation_id: str | None, events: Any) -> EventLogEntry | None:
        """Append a batch of client-observed events (no authentication)."""
        return await self._core.services.eventlog.append(session_id, situation_id, events)

    async def get_situations(self) -> list[Situation]:
        """List the situation catalogue (public)."""
        return self._core.services.situation.list_situations()

    async def update_situation(self, access_token: AccessToken | None, situation_id: str, update: SituationUpdate) -> Situation:
        """Edit a situation (authenticated users only)."""
        await self.authenticate(access_token)
        return await self._core.services.situation.update_situation(situation_id, update)

    def get_client_config(self) -> dict[str, str]:
        """Public settings a client needs to sign in with the identity provider."""
        config = self._core.config
        return {"identityUrl": config.identity_url, "identityAnonKey": config.identity_anon_key}
