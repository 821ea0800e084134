from typing import Any

import structlog

from parlote.core.core import Service
from parlote.core.modules.eventlog.models import EventLogEntry
from parlote.core.modules.eventlog.storage import append_line, get_log_file_path
from parlote.errors import ValidationError

logger = structlog.get_logger(__name__)


class EventLogService(Service):
    """Appends event batches to one JSON-lines file per day."""

    async def append(self, session_id: str | None, situation_id: str | None, events: Any) -> EventLogEntry | None:
        """Append a batch of events for a session.

        Returns the written entry, or None when the batch was empty and nothing was written.
        """
        if not session_id or not isinstance(session_id, str) or not isinstance(events, list):
            raise ValidationError("Invalid log payload")
        if not events:
            return None

        entry = EventLogEntry(session_id=session_id, situation_id=situation_id, events=events)
        file_path = get_log_file_path(self.core.config.conversation_logs_path, entry.ts.date())
        append_line(file_path, entry.model_dump_json(by_alias=True))
        logger.debug("event_batch_logged", session_id=session_id, event_count=len(events))
        return entry
