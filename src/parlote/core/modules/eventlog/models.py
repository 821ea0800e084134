"""Conversation event log entries."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from parlote.utils import now


class EventLogEntry(BaseModel):
    """One batch of client-observed protocol events, written as one JSON line.

    Append-only: duplicates are tolerated and entries are never rewritten.
    """

    ts: datetime = Field(default_factory=now)
    session_id: str
    situation_id: str | None = None
    events: list[Any]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
