from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from smart_bookmarks.models.user import User
from smart_bookmarks.services.auth import (
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
)
from smart_bookmarks.services.session import SessionRegistry
from smart_bookmarks.services.sync import SyncController
from smart_bookmarks.utils.preferences import PreferenceStore

security = HTTPBearer()
auth_service = AuthService()


def get_auth_service() -> AuthService:
    return auth_service


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_preferences(request: Request) -> PreferenceStore:
    return request.app.state.preferences


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Get the current authenticated user.

    This dependency validates the access token and returns the user
    if authentication is successful.

    Args:
        credentials: The HTTP Authorization header credentials
        auth: The auth service

    Returns:
        The authenticated user

    Raises:
        HTTPException: If authentication fails
    """
    try:
        return await auth.get_current_user(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except TokenExpiredError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_controller(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    current_user: Annotated[User, Depends(get_current_user)],
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SyncController:
    """Get the sync controller of the current user's session.

    The first request of a user opens the session, which loads the
    collection from the remote store.
    """
    return await registry.open(current_user, credentials.credentials)
