from fastapi import APIRouter

from parlote.web.deps import AppDep

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check() -> dict[str, bool]:
    return {"ok": True}


@router.get(
    "/config",
    summary="Get public client configuration",
    description="Identity provider URL and anonymous key used by clients to sign in.",
    operation_id="getClientConfig",
)
async def get_client_config(app: AppDep) -> dict[str, str]:
    return app.get_client_config()
