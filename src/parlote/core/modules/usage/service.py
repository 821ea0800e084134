import math
from typing import Any
from uuid import uuid4

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from parlote.core.core import Service
from parlote.core.modules.usage.models import UsageRecord, UsageSnapshot
from parlote.errors import ValidationError
from parlote.utils import now, today

logger = structlog.get_logger(__name__)


class UsageService(Service):
    """Daily quota ledger: one counter per (user, date), capped at the daily limit.

    ``increment`` reads the current counter and writes the capped sum back as two
    separate operations. Two concurrent increments for the same user and day can
    both read the same value, so one of them is lost. Usage can be under-counted
    by at most one ping interval this way, never pushed above the cap.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("usage")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("user_id", 1), ("usage_date", 1)], unique=True)

    @property
    def daily_limit(self) -> int:
        return self.core.config.daily_limit_seconds

    def remaining(self, snapshot: UsageSnapshot) -> int:
        return max(self.daily_limit - snapshot.used_seconds, 0)

    async def get_usage(self, user_id: str) -> UsageSnapshot:
        """Get today's usage. A missing record means nothing was used yet."""
        usage_date = today().isoformat()
        doc = await self._collection.find_one({"user_id": user_id, "usage_date": usage_date})
        if doc is None:
            return UsageSnapshot(usage_date=usage_date, used_seconds=0)
        record = UsageRecord.model_validate(doc)
        return UsageSnapshot(usage_date=record.usage_date, used_seconds=record.used_seconds)

    async def increment(self, user_id: str, seconds: float) -> UsageSnapshot:
        """Add observed seconds to today's counter, capped at the daily limit."""
        if isinstance(seconds, bool) or not isinstance(seconds, int | float) or not math.isfinite(seconds) or seconds <= 0:
            raise ValidationError("Invalid seconds value")

        try:
            current = await self.get_usage(user_id)
            next_value = min(current.used_seconds + math.ceil(seconds), self.daily_limit)
            await self._collection.update_one(
                {"user_id": user_id, "usage_date": current.usage_date},
                {
                    "$set": {"used_seconds": next_value, "updated_at": now()},
                    "$setOnInsert": {"_id": uuid4()},
                },
                upsert=True,
            )
        except PyMongoError:
            logger.exception("usage_increment_failed", user_id=user_id, seconds=seconds)
            raise

        logger.debug("usage_incremented", user_id=user_id, usage_date=current.usage_date, used_seconds=next_value)
        return UsageSnapshot(usage_date=current.usage_date, used_seconds=next_value)
