from fastapi import APIRouter

from tixbook.dependencies.auth import CurrentPrincipal

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health check")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/secure", summary="Bearer token protected health check")
async def secure_ping(principal: CurrentPrincipal) -> dict[str, str]:
    return {"status": "ok", "user": principal.username}
