from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from parlote.app import App
from parlote.core.modules.identity.models import AccessToken

bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> AccessToken | None:
    """Extract the bearer token. Verification happens in App, so a missing token is passed through as None."""
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return AccessToken(credentials.credentials)
    return None


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AccessTokenDep = Annotated[AccessToken | None, Depends(get_access_token)]
