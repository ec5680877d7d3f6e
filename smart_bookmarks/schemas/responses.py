from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from smart_bookmarks.models.bookmark import Bookmark


class HealthCheckResponseSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool


class BookmarkView(BaseModel):
    """Read-side view of a bookmark collection.

    Attributes:
        bookmarks: Bookmarks of the selected category in display order
        recommended: Recommended next bookmark across the whole collection
        categories: Filter categories present, starting with "All"
        category: The category the bookmarks were filtered by
    """

    model_config = ConfigDict(frozen=True)

    bookmarks: list[Bookmark] = Field(description="Ranked bookmarks")
    recommended: Bookmark | None = Field(None, description="Recommended next bookmark")
    categories: list[str] = Field(description="Available filter categories")
    category: str = Field(description="Selected filter category")


class RefreshTrigger(str, Enum):
    """Client events that may trigger a refetch.

    Attributes:
        VISIBLE: The document became visible
        HIDDEN: The document was hidden
        FOCUS: The window regained focus
    """

    VISIBLE = "visible"
    HIDDEN = "hidden"
    FOCUS = "focus"


class RefreshRequestSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    trigger: RefreshTrigger


class RefreshResponseSchema(BaseModel):
    """Result of a refresh trigger.

    Attributes:
        refetched: Whether the collection was replaced by a fresh fetch
        view: The collection view after the trigger was handled
    """

    model_config = ConfigDict(frozen=True)

    refetched: bool
    view: BookmarkView


class PreferencesSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    dark_mode: bool
