from fastapi import APIRouter
from pydantic import BaseModel

from parlote.core.modules.situation.models import Situation, SituationUpdate
from parlote.web.deps import AccessTokenDep, AppDep
from parlote.web.openapi import ErrorResponse

router = APIRouter(prefix="/situations", tags=["situations"])


class SituationsResponse(BaseModel):
    situations: list[Situation]


class SituationResponse(BaseModel):
    situation: Situation


@router.get(
    "",
    summary="List situations",
    description="Get the situation catalogue.",
    operation_id="listSituations",
)
async def list_situations(app: AppDep) -> SituationsResponse:
    return SituationsResponse(situations=await app.get_situations())


@router.put(
    "/{situation_id}",
    summary="Update situation",
    description="Update title, theme, prompt, suggested phrases, accent or ambience of a situation.",
    operation_id="updateSituation",
    responses={
        200: {"description": "Situation updated"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Situation not found"},
    },
)
async def update_situation(
    situation_id: str, update: SituationUpdate, app: AppDep, access_token: AccessTokenDep
) -> SituationResponse:
    return SituationResponse(situation=await app.update_situation(access_token, situation_id, update))
