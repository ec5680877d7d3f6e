from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from smart_bookmarks.dependencies import get_preferences
from smart_bookmarks.schemas.responses import PreferencesSchema
from smart_bookmarks.utils.preferences import PreferenceError, PreferenceStore

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesSchema)
async def get_preferences_view(
    preferences: Annotated[PreferenceStore, Depends(get_preferences)],
) -> PreferencesSchema:
    return PreferencesSchema(dark_mode=preferences.dark_mode)


@router.post("/dark-mode/toggle", response_model=PreferencesSchema)
async def toggle_dark_mode(
    preferences: Annotated[PreferenceStore, Depends(get_preferences)],
) -> PreferencesSchema:
    """Flip the dark mode preference.

    Raises:
        HTTPException: If the preference cannot be saved
    """
    try:
        return PreferencesSchema(dark_mode=preferences.toggle_dark_mode())
    except PreferenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
