from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from smart_bookmarks.models.bookmark import Bookmark


class ChangeKind(str, Enum):
    """Kinds of row-level change notifications.

    Attributes:
        INSERT: A bookmark row was created
        UPDATE: A bookmark row was modified
        DELETE: A bookmark row was removed
    """

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """A single notification from the remote change stream.

    Insert and update events carry the full row. Delete events may carry only
    the id of the removed row.

    Attributes:
        kind: What happened to the row
        bookmark_id: ID of the affected row
        bookmark: The new row for insert and update events
        user_id: Owning user when the payload names one
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    bookmark_id: str
    bookmark: Bookmark | None = None
    user_id: str | None = None

    @model_validator(mode="after")
    def check_row(self) -> "ChangeEvent":
        if self.kind != ChangeKind.DELETE and self.bookmark is None:
            raise ValueError(f"{self.kind.value} event requires a bookmark row")
        if self.bookmark is not None and self.bookmark.id != self.bookmark_id:
            raise ValueError("bookmark_id does not match the bookmark row")
        return self

    @classmethod
    def from_webhook(cls, payload: dict[str, Any]) -> "ChangeEvent":
        """Build an event from a database webhook payload.

        Args:
            payload: Body of the form `{"type": "INSERT", "record": {...},
                "old_record": {...}}`

        Returns:
            The parsed change event

        Raises:
            ValueError: If the payload type is unknown or a row is missing
        """
        kind = ChangeKind(str(payload.get("type", "")).lower())
        record = payload.get("record") or None
        old_record = payload.get("old_record") or None

        if kind == ChangeKind.DELETE:
            if not isinstance(old_record, dict) or old_record.get("id") is None:
                raise ValueError("delete event requires old_record.id")
            user_id = old_record.get("user_id")
            return cls(
                kind=kind,
                bookmark_id=str(old_record["id"]),
                user_id=str(user_id) if user_id is not None else None,
            )

        if not record:
            raise ValueError(f"{kind.value} event requires record")
        bookmark = Bookmark.model_validate(record)
        return cls(
            kind=kind,
            bookmark_id=bookmark.id,
            bookmark=bookmark,
            user_id=bookmark.user_id,
        )
