import logging
from contextlib import asynccontextmanager
from os import environ
from typing import Annotated

from fastapi import Depends, FastAPI

from smart_bookmarks.api import auth, bookmark, changes, preferences
from smart_bookmarks.db import SupabaseManager
from smart_bookmarks.dependencies import get_current_user
from smart_bookmarks.models.user import User
from smart_bookmarks.schemas.responses import HealthCheckResponseSchema
from smart_bookmarks.services.session import SessionRegistry
from smart_bookmarks.utils.preferences import PreferenceStore


def configure_logging() -> None:
    logging.basicConfig(
        level=environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    manager = SupabaseManager()
    app.state.registry = SessionRegistry(manager)
    app.state.preferences = PreferenceStore()
    app.state.webhook_secret = environ.get("SUPABASE_WEBHOOK_SECRET", "")
    yield
    await app.state.registry.close_all()
    await manager.close()


app = FastAPI(title="Smart Bookmarks", lifespan=lifespan)
app.include_router(bookmark.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(preferences.router, prefix="/api")
app.include_router(changes.router, prefix="/api")


@app.get("/api/health", response_model=HealthCheckResponseSchema)
async def health_check() -> HealthCheckResponseSchema:
    return HealthCheckResponseSchema(success=True)


@app.get("/api/me", response_model=User)
async def get_current_user_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get the current user's identity.

    This is a protected endpoint that requires authentication.
    The user is read from the access token.

    Args:
        current_user: Injected by the auth dependency

    Returns:
        The current user
    """
    return current_user
