"""Realtime session issuance models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TurnDetection(BaseModel):
    type: Literal["server_vad"] = "server_vad"


class InputAudioTranscription(BaseModel):
    model: str


class RealtimeSessionRequest(BaseModel):
    """Body sent to the provider's session-issuing endpoint."""

    model: str
    voice: str
    instructions: str
    turn_detection: TurnDetection = Field(default_factory=TurnDetection)
    input_audio_transcription: InputAudioTranscription


class ClientSecret(BaseModel):
    value: str
    expires_at: int | None = None  # Unix timestamp


class RealtimeSessionResponse(BaseModel):
    """Subset of the provider's session object that we consume."""

    id: str
    client_secret: ClientSecret

    model_config = ConfigDict(extra="ignore")


class SessionDescriptor(BaseModel):
    """Ephemeral credential handed to the client for a single negotiation."""

    session_id: str = Field(..., description="Session ID assigned by the realtime provider")
    client_secret: str = Field(..., description="Single-use credential for the offer/answer exchange")
    model: str = Field(..., description="Realtime model identifier")
    remaining_seconds: int = Field(..., description="Quota left today at issuance time")
    expires_at: datetime | None = Field(None, description="Credential expiry, when the provider reports one")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
