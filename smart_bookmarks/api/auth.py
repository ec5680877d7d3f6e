from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from smart_bookmarks.dependencies import (
    get_auth_service,
    get_current_user,
    get_registry,
    security,
)
from smart_bookmarks.models.user import User
from smart_bookmarks.services.auth import AuthService
from smart_bookmarks.services.session import SessionRegistry

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    current_user: Annotated[User, Depends(get_current_user)],
    registry: Annotated[SessionRegistry, Depends(get_registry)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> None:
    """Sign the current user out.

    Clears the user's bookmark session and revokes the token at the
    identity provider.
    """
    await registry.sign_out(current_user.id)
    await auth.sign_out(credentials.credentials)
