from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tixbook.auth.models import Principal, Role
from tixbook.auth.service import AuthService, UserNotFoundError
from tixbook.core.config import Settings, get_settings
from tixbook.security.tokens import TokenError, TokenExpiredError

bearer_scheme = HTTPBearer(auto_error=False)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


async def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Auth service is not configured")
    return service


async def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
AppSettingsDep = Annotated[Settings, Depends(get_app_settings)]


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    service: AuthServiceDep,
    request: Request,
) -> Principal:
    """Resolve the bearer token into the principal it was issued for."""

    cached = getattr(request.state, "principal", None)
    if isinstance(cached, Principal):
        return cached

    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated", headers=_UNAUTHORIZED_HEADERS)

    try:
        principal = await service.resolve_principal(credentials.credentials)
    except TokenExpiredError as exc:
        raise HTTPException(status_code=401, detail="Token expired", headers=_UNAUTHORIZED_HEADERS) from exc
    except (TokenError, UserNotFoundError) as exc:
        raise HTTPException(
            status_code=401, detail="Invalid authentication credentials", headers=_UNAUTHORIZED_HEADERS
        ) from exc

    request.state.principal = principal
    return principal


def role_required(role: Role) -> Callable[[Principal], Principal]:
    """Dependency factory ensuring the current principal has the requested role."""

    async def dependency(principal: Annotated[Principal, Depends(get_current_principal)]) -> Principal:
        if not principal.has_role(role):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return principal

    return dependency


require_operator = role_required(Role.OPERATOR)

CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
OperatorPrincipal = Annotated[Principal, Depends(require_operator)]
