"""Realtime event channel messages.

Inbound payloads decode into one of the known event kinds, an ``UnknownEvent`` for
JSON objects of any other kind, or a ``RawEvent`` holding the payload verbatim when
it is not a JSON object. Decoding never drops a message.
"""

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


class ServerEvent(BaseModel):
    """Base for events received over the event channel."""

    type: str

    model_config = ConfigDict(extra="allow")

    def to_log(self) -> Any:
        """Value recorded in the conversation log: the payload as received."""
        return self.model_dump(mode="json", exclude_unset=True)


class TextDelta(ServerEvent):
    """Incremental assistant text."""

    type: Literal["response.text.delta", "response.audio_transcript.delta"]
    delta: str = ""


class TextDone(ServerEvent):
    """End of an assistant text or audio transcript stream."""

    type: Literal["response.text.done", "response.audio_transcript.done"]


class TranscriptionCompleted(ServerEvent):
    """Transcription of what the learner said."""

    type: Literal["conversation.item.input_audio_transcription.completed", "input_audio_transcription.done"]
    transcript: str = ""


class ErrorEvent(ServerEvent):
    type: Literal["error"]
    message: str | None = None
    error: dict[str, Any] | None = None

    @property
    def description(self) -> str:
        if self.message:
            return self.message
        if self.error and self.error.get("message"):
            return str(self.error["message"])
        return "unknown"


class UnknownEvent(ServerEvent):
    """Any other JSON object; forwarded to the log, not rendered."""

    type: str = ""


class RawEvent(ServerEvent):
    """Payload that could not be parsed as a JSON object."""

    type: Literal["raw"] = "raw"
    data: str

    def to_log(self) -> Any:
        return {"type": "raw", "data": self.data}


KnownEvent = Annotated[TextDelta | TextDone | TranscriptionCompleted | ErrorEvent, Field(discriminator="type")]

_known_event_adapter: TypeAdapter[KnownEvent] = TypeAdapter(KnownEvent)


def decode_event(data: str | bytes) -> ServerEvent:
    """Decode one inbound event channel message."""
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    try:
        payload = json.loads(text)
    except ValueError:
        return RawEvent(data=text)

    if not isinstance(payload, dict):
        return RawEvent(data=text)

    try:
        return _known_event_adapter.validate_python(payload)
    except PydanticValidationError:
        pass

    try:
        return UnknownEvent.model_validate(payload)
    except PydanticValidationError:
        return RawEvent(data=text)


def user_text_messages(text: str) -> list[dict[str, Any]]:
    """Messages that submit typed text: add it to the conversation, then ask for a response."""
    return [
        {
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": text}],
            },
        },
        {"type": "response.create"},
    ]
