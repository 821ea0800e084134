from datetime import UTC, datetime

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from parlote.core.core import Service
from parlote.core.modules.realtime.models import (
    InputAudioTranscription,
    RealtimeSessionRequest,
    RealtimeSessionResponse,
    SessionDescriptor,
)
from parlote.core.modules.realtime.prompts import build_instructions
from parlote.core.modules.situation.models import Situation
from parlote.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger(__name__)


class RealtimeService(Service):
    """Mints ephemeral realtime sessions from the provider."""

    def ensure_configured(self) -> None:
        if not self.core.config.openai_api_key:
            raise ConfigurationError("Missing realtime API key in environment")

    async def issue_session(self, situation: Situation, prompt_override: str | None, remaining_seconds: int) -> SessionDescriptor:
        """Request an ephemeral credential for a conversation in the given situation.

        Args:
            situation: Situation the model should role-play
            prompt_override: Optional learner-supplied directives
            remaining_seconds: Quota snapshot reported back to the client

        Returns:
            SessionDescriptor for a single offer/answer exchange
        """
        self.ensure_configured()
        config = self.core.config
        payload = RealtimeSessionRequest(
            model=config.realtime_model,
            voice=config.realtime_voice,
            instructions=build_instructions(situation, prompt_override),
            input_audio_transcription=InputAudioTranscription(model=config.realtime_transcribe_model),
        )

        try:
            response = await self.core.http.post(
                config.realtime_sessions_url,
                headers={"Authorization": f"Bearer {config.openai_api_key}"},
                json=payload.model_dump(),
            )
        except httpx.HTTPError as e:
            logger.warning("realtime_session_request_failed", situation_id=situation.id, error=str(e))
            raise UpstreamError(f"Realtime provider unreachable: {e}") from e

        if not response.is_success:
            logger.warning("realtime_session_rejected", situation_id=situation.id, status_code=response.status_code)
            raise UpstreamError(response.text)

        try:
            session = RealtimeSessionResponse.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise UpstreamError(f"Unexpected realtime session response: {response.text}") from e

        expires_at = None
        if session.client_secret.expires_at is not None:
            expires_at = datetime.fromtimestamp(session.client_secret.expires_at, UTC)

        logger.info("realtime_session_issued", session_id=session.id, situation_id=situation.id)
        return SessionDescriptor(
            session_id=session.id,
            client_secret=session.client_secret.value,
            model=config.realtime_model,
            remaining_seconds=remaining_seconds,
            expires_at=expires_at,
        )
