from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from parlote.web.deps import AppDep
from parlote.web.openapi import ErrorResponse

router = APIRouter(tags=["log"])


class EventLogRequest(BaseModel):
    """Batch of protocol events observed by a client during one session."""

    session_id: str = Field(..., min_length=1, description="Realtime session ID")
    situation_id: str | None = Field(None, description="Situation the session was started for")
    events: list[Any] = Field(..., description="Events in the order they were observed")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@router.post(
    "/log",
    summary="Append session events",
    description="Append a batch of events to today's conversation log.",
    operation_id="appendLog",
    responses={
        200: {"description": "Batch accepted"},
        400: {"model": ErrorResponse, "description": "Malformed payload"},
    },
)
async def append_log(request: EventLogRequest, app: AppDep) -> dict[str, bool]:
    await app.append_event_log(request.session_id, request.situation_id, request.events)
    return {"ok": True}
