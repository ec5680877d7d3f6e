from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookmarkBase(BaseModel):
    """Base model for bookmark data.

    This model contains the fields supplied by the user when saving a link.

    Attributes:
        title: Display text for the bookmark
        url: Absolute URL of the saved link
    """

    model_config = ConfigDict(frozen=True)

    title: str
    url: str = Field(min_length=1)


class BookmarkCreate(BookmarkBase):
    """Model for creating a new bookmark.

    The title may be shorter than three characters, in which case a title is
    derived from the URL host at submission time.
    """

    pass


class Bookmark(BookmarkBase):
    """Model representing a bookmark row as echoed by the remote store.

    Attributes:
        id: Identifier assigned by the store at creation
        created_at: When the bookmark was created
        visit_count: Number of recorded visits
        last_visited_at: When the bookmark was last visited, if ever
        user_id: ID of the owning user, when the payload carries it
    """

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    visit_count: int = Field(0, ge=0)
    last_visited_at: datetime | None = None
    user_id: str | None = None

    @field_validator("id", "user_id", mode="before")
    def coerce_id(cls, v: object) -> object:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("visit_count", mode="before")
    def default_visit_count(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("created_at", "last_visited_at")
    def ensure_aware(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def last_activity_at(self) -> datetime:
        """Most recent of the last visit or, if never visited, creation."""
        return self.last_visited_at or self.created_at
