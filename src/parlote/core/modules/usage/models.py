"""Per-user, per-day usage accounting."""

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from parlote.core.db import MongoModel
from parlote.utils import now


class UsageRecord(MongoModel):
    """Connected seconds used by one user on one calendar day.

    Indexed on (user_id, usage_date) - unique.
    """

    user_id: str
    usage_date: str  # ISO date on the process-local clock
    used_seconds: int = 0
    updated_at: datetime = Field(default_factory=now)


class UsageSnapshot(BaseModel):
    """Usage for the current day as seen by a single read or write."""

    usage_date: str
    used_seconds: int


class UsageReport(BaseModel):
    """Usage ping response."""

    used_seconds: int = Field(..., description="Seconds used today")
    remaining_seconds: int = Field(..., description="Seconds left before the daily limit")

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
