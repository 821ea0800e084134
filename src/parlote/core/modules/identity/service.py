from datetime import timedelta
from typing import Any

import httpx
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from parlote.core.core import Service
from parlote.core.modules.identity.models import AccessToken, CachedIdentity, Identity
from parlote.errors import AuthenticationError, ConfigurationError
from parlote.utils import now

logger = structlog.get_logger(__name__)


class IdentityService(Service):
    """Verifies bearer tokens against the identity provider's user endpoint."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._verified: dict[AccessToken, CachedIdentity] = {}

    def is_configured(self) -> bool:
        return bool(self.core.config.identity_url and self.core.config.identity_anon_key)

    async def verify_token(self, access_token: AccessToken | None) -> Identity:
        """Resolve an access token to the identity it was issued for."""
        if not access_token:
            raise AuthenticationError("Missing access token")
        if not self.is_configured():
            raise ConfigurationError("Identity provider is not configured")

        cached = self._verified.get(access_token)
        ttl = timedelta(seconds=self.core.config.identity_cache_seconds)
        if cached is not None:
            if now() - cached.verified_at < ttl:
                return cached.identity
            del self._verified[access_token]

        url = f"{self.core.config.identity_url.rstrip('/')}/auth/v1/user"
        try:
            response = await self.core.http.get(
                url,
                headers={
                    "apikey": self.core.config.identity_anon_key,
                    "Authorization": f"Bearer {access_token}",
                },
            )
        except httpx.HTTPError as e:
            logger.warning("identity_request_failed", error=str(e))
            raise AuthenticationError("Unable to verify access token") from e

        if response.status_code != 200:
            self._verified.pop(access_token, None)
            raise AuthenticationError("Invalid or expired access token")

        data = response.json()
        if not isinstance(data, dict) or not data.get("id"):
            raise AuthenticationError("Invalid or expired access token")

        identity = Identity(id=str(data["id"]), email=data.get("email"))
        self._drop_expired(ttl)
        self._verified[access_token] = CachedIdentity(identity=identity, verified_at=now())
        logger.debug("identity_verified", user_id=identity.id)
        return identity

    def _drop_expired(self, ttl: timedelta) -> None:
        cutoff = now() - ttl
        for token in [token for token, cached in self._verified.items() if cached.verified_at <= cutoff]:
            del self._verified[token]
