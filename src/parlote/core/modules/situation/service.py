from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from parlote.core.core import Service
from parlote.core.modules.situation.models import Situation, SituationUpdate
from parlote.core.modules.situation.storage import read_situations, write_situations
from parlote.errors import NotFoundError
from parlote.utils import now

logger = structlog.get_logger(__name__)


class SituationService(Service):
    """Situation catalogue kept in a JSON file with an in-memory cache."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._situations: dict[str, Situation] = {}

    def get_situation(self, situation_id: str) -> Situation:
        """Get situation by ID from cache."""
        if situation_id not in self._situations:
            raise NotFoundError("Situation not found")
        return self._situations[situation_id]

    def list_situations(self) -> list[Situation]:
        """Get all situations in catalogue order."""
        return list(self._situations.values())

    async def update_situation(self, situation_id: str, update: SituationUpdate) -> Situation:
        """Apply a partial update and persist the catalogue."""
        current = self.get_situation(situation_id)
        changes = update.model_dump(exclude_none=True)
        updated = current.model_copy(update={**changes, "updated_at": now()})
        situations = {**self._situations, situation_id: updated}
        write_situations(self.core.config.situations_path, list(situations.values()))
        self._situations = situations
        logger.info("situation_updated", situation_id=situation_id, fields=sorted(changes))
        return updated

    async def reload(self) -> None:
        """Reload the catalogue from disk."""
        situations = read_situations(self.core.config.situations_path)
        self._situations = {situation.id: situation for situation in situations}

    async def on_start(self) -> None:
        await self.reload()
        logger.debug("situation_service_started", situation_count=len(self._situations))
