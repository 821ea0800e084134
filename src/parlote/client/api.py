"""HTTP clients for the Parlote backend and the realtime provider's negotiation endpoint."""

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from parlote.core.modules.realtime.models import SessionDescriptor
from parlote.core.modules.usage.models import UsageReport
from parlote.errors import (
    AuthenticationError,
    NotFoundError,
    QuotaExceededError,
    TransportFailure,
    UpstreamError,
    UserError,
    ValidationError,
)

M = TypeVar("M", bound=BaseModel)

_ERRORS_BY_STATUS: dict[int, type[UserError]] = {
    400: ValidationError,
    401: AuthenticationError,
    404: NotFoundError,
    429: QuotaExceededError,
}


def raise_for_error(response: httpx.Response) -> None:
    """Raise the error class matching a non-success backend response."""
    if response.is_success:
        return

    message = response.text
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        message = str(body["message"])

    error_class = _ERRORS_BY_STATUS.get(response.status_code, UpstreamError)
    raise error_class(message)


def parse_body(response: httpx.Response, model: type[M]) -> M:
    """Decode a success body, treating anything unexpected as an upstream error."""
    try:
        return model.model_validate_json(response.content)
    except PydanticValidationError as e:
        raise UpstreamError(f"Unexpected response from {response.request.url.path}: {response.text[:200]}") from e


class BackendClient:
    """Calls the Parlote API. ``http`` must have ``base_url`` set to the backend."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def create_session(self, access_token: str, situation_id: str, prompt_override: str | None) -> SessionDescriptor:
        response = await self._http.post(
            "/api/session",
            headers={"Authorization": f"Bearer {access_token}"},
            json={"situationId": situation_id, "promptOverride": prompt_override or ""},
        )
        raise_for_error(response)
        return parse_body(response, SessionDescriptor)

    async def ping_usage(self, access_token: str, seconds: int) -> UsageReport:
        response = await self._http.post(
            "/api/usage/ping",
            headers={"Authorization": f"Bearer {access_token}"},
            json={"seconds": seconds},
        )
        raise_for_error(response)
        return parse_body(response, UsageReport)

    async def append_log(self, session_id: str, situation_id: str | None, events: list[Any]) -> None:
        response = await self._http.post(
            "/api/log",
            json={"sessionId": session_id, "situationId": situation_id, "events": events},
        )
        raise_for_error(response)


class RealtimeNegotiator:
    """Submits a local offer to the provider and returns the remote answer."""

    def __init__(self, http: httpx.AsyncClient, realtime_url: str) -> None:
        self._http = http
        self._realtime_url = realtime_url

    async def exchange(self, model: str, client_secret: str, offer_sdp: str) -> str:
        """Perform the one-shot offer/answer exchange authenticated by the ephemeral credential."""
        try:
            response = await self._http.post(
                self._realtime_url,
                params={"model": model},
                headers={
                    "Authorization": f"Bearer {client_secret}",
                    "Content-Type": "application/sdp",
                    "OpenAI-Beta": "realtime=v1",
                },
                content=offer_sdp,
            )
        except httpx.HTTPError as e:
            raise TransportFailure(f"Negotiation request failed: {e}") from e

        if not response.is_success:
            raise TransportFailure(f"Negotiation rejected ({response.status_code}): {response.text}")
        return response.text
