from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from parlote.core.modules.realtime.models import SessionDescriptor
from parlote.web.deps import AccessTokenDep, AppDep
from parlote.web.openapi import ErrorResponse

router = APIRouter(tags=["sessions"])


class CreateSessionRequest(BaseModel):
    """Request for an ephemeral realtime session."""

    situation_id: str = Field(..., description="Situation to role-play")
    prompt_override: str | None = Field(None, description="Extra directives appended to the situation prompt")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@router.post(
    "/session",
    summary="Create realtime session",
    description=(
        "Verify the caller, check today's remaining quota and mint a single-use credential "
        "for one offer/answer exchange with the realtime provider."
    ),
    operation_id="createSession",
    responses={
        200: {"description": "Session credential issued"},
        401: {"model": ErrorResponse, "description": "Missing or invalid access token"},
        404: {"model": ErrorResponse, "description": "Situation not found"},
        429: {"model": ErrorResponse, "description": "Daily usage limit reached"},
        500: {"model": ErrorResponse, "description": "Provider or configuration error"},
    },
)
async def create_session(request: CreateSessionRequest, app: AppDep, access_token: AccessTokenDep) -> SessionDescriptor:
    return await app.create_realtime_session(access_token, request.situation_id, request.prompt_override)
