from fastapi import APIRouter
from pydantic import BaseModel, Field

from parlote.core.modules.usage.models import UsageReport
from parlote.web.deps import AccessTokenDep, AppDep
from parlote.web.openapi import ErrorResponse

router = APIRouter(prefix="/usage", tags=["usage"])


class UsagePingRequest(BaseModel):
    """Connected seconds observed by the client since its previous ping."""

    seconds: float = Field(..., gt=0, description="Positive number of seconds")


@router.post(
    "/ping",
    summary="Report usage",
    description="Add connected seconds to today's usage and return what is left.",
    operation_id="pingUsage",
    responses={
        200: {"description": "Updated usage"},
        400: {"model": ErrorResponse, "description": "Invalid seconds value"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def ping_usage(request: UsagePingRequest, app: AppDep, access_token: AccessTokenDep) -> UsageReport:
    return await app.record_usage(access_token, request.seconds)
