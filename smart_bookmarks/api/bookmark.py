from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from smart_bookmarks.dependencies import get_controller
from smart_bookmarks.models.bookmark import Bookmark, BookmarkCreate
from smart_bookmarks.schemas.responses import (
    BookmarkView,
    RefreshRequestSchema,
    RefreshResponseSchema,
    RefreshTrigger,
)
from smart_bookmarks.services.sync import (
    BookmarkError,
    BookmarkNotFoundError,
    SyncController,
)

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.get("", response_model=BookmarkView)
async def list_bookmarks(
    controller: Annotated[SyncController, Depends(get_controller)],
    category: Annotated[str | None, Query(max_length=32)] = None,
) -> BookmarkView:
    """Get the ranked bookmarks of the current user.

    Args:
        controller: The current user's sync controller
        category: Category to filter by, remembered for later requests

    Returns:
        Ranked bookmarks, the recommendation and the available categories
    """
    if category is not None:
        controller.select_category(category)
    return controller.view()


@router.post("", response_model=Bookmark, status_code=status.HTTP_201_CREATED)
async def add_bookmark(
    bookmark: BookmarkCreate,
    controller: Annotated[SyncController, Depends(get_controller)],
) -> Bookmark:
    """Save a new bookmark.

    Args:
        bookmark: Title and URL to save
        controller: The current user's sync controller

    Returns:
        The bookmark as stored

    Raises:
        HTTPException: If the store rejects the bookmark
    """
    try:
        return await controller.add_bookmark(bookmark.title, bookmark.url)
    except BookmarkError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.delete("/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bookmark(
    bookmark_id: str,
    controller: Annotated[SyncController, Depends(get_controller)],
) -> None:
    """Delete a bookmark.

    Raises:
        HTTPException: If the store rejects the delete
    """
    try:
        await controller.delete_bookmark(bookmark_id)
    except BookmarkError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.post("/recommended/visit", response_model=Bookmark)
async def visit_recommended(
    controller: Annotated[SyncController, Depends(get_controller)],
) -> Bookmark:
    """Record a visit to the recommended bookmark.

    Raises:
        HTTPException: If there is no bookmark to recommend
    """
    try:
        return await controller.visit_recommended()
    except BookmarkNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.post("/{bookmark_id}/visit", response_model=Bookmark)
async def visit_bookmark(
    bookmark_id: str,
    controller: Annotated[SyncController, Depends(get_controller)],
) -> Bookmark:
    """Record a visit to a bookmark.

    The visit count is updated immediately and synced in the background.

    Raises:
        HTTPException: If the bookmark is not in the collection
    """
    try:
        return await controller.record_visit(bookmark_id)
    except BookmarkNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.post("/refresh", response_model=RefreshResponseSchema)
async def refresh(
    refresh_request: RefreshRequestSchema,
    controller: Annotated[SyncController, Depends(get_controller)],
) -> RefreshResponseSchema:
    """Report a visibility or focus change of the client.

    Becoming visible after being hidden, or regaining focus, refetches the
    collection. Fetch failures keep the current collection.
    """
    if refresh_request.trigger == RefreshTrigger.FOCUS:
        refetched = await controller.on_focus()
    else:
        refetched = await controller.on_visibility_change(
            hidden=refresh_request.trigger == RefreshTrigger.HIDDEN
        )
    return RefreshResponseSchema(refetched=refetched, view=controller.view())
