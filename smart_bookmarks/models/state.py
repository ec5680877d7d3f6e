"""Application state and its transitions.

`AppState` is immutable. Every transition takes the current state and
returns a new one, so the sync controller only ever swaps whole values and
readers always hold a consistent snapshot.
"""

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from smart_bookmarks.models.bookmark import Bookmark
from smart_bookmarks.models.user import User
from smart_bookmarks.services.category import ALL
from smart_bookmarks.services.ranking import rank_bookmarks


class AppState(BaseModel):
    """State owned by a single sync controller.

    Attributes:
        user: The signed-in user, or None when signed out
        bookmarks: The bookmark collection, unique by id
        category: Selected category filter
    """

    model_config = ConfigDict(frozen=True)

    user: User | None = None
    bookmarks: tuple[Bookmark, ...] = ()
    category: str = ALL

    def find(self, bookmark_id: str) -> Bookmark | None:
        for bookmark in self.bookmarks:
            if bookmark.id == bookmark_id:
                return bookmark
        return None


def signed_in(user: User) -> AppState:
    return AppState(user=user)


def signed_out() -> AppState:
    return AppState()


def replace_all(state: AppState, bookmarks: Iterable[Bookmark]) -> AppState:
    """Swap in a freshly fetched collection, dropping duplicate ids."""
    seen: set[str] = set()
    unique = []
    for bookmark in bookmarks:
        if bookmark.id not in seen:
            seen.add(bookmark.id)
            unique.append(bookmark)
    return state.model_copy(update={"bookmarks": tuple(unique)})


def insert_bookmark(state: AppState, bookmark: Bookmark) -> AppState:
    """Prepend a bookmark unless one with the same id is already present."""
    if state.find(bookmark.id) is not None:
        return state
    return state.model_copy(update={"bookmarks": (bookmark,) + state.bookmarks})


def remove_bookmark(state: AppState, bookmark_id: str) -> AppState:
    if state.find(bookmark_id) is None:
        return state
    remaining = tuple(b for b in state.bookmarks if b.id != bookmark_id)
    return state.model_copy(update={"bookmarks": remaining})


def replace_bookmark(state: AppState, bookmark: Bookmark) -> AppState:
    """Replace the bookmark with the same id in place, then re-sort.

    Unknown ids, and rows identical to the stored one in an already ranked
    collection, leave the state unchanged.
    """
    if state.find(bookmark.id) is None:
        return state
    updated = [bookmark if b.id == bookmark.id else b for b in state.bookmarks]
    ranked = tuple(rank_bookmarks(updated))
    if ranked == state.bookmarks:
        return state
    return state.model_copy(update={"bookmarks": ranked})


def record_visit(state: AppState, bookmark_id: str, visited_at: datetime) -> AppState:
    """Increment the visit count of a bookmark and re-sort.

    Unknown ids leave the state unchanged.
    """
    bookmark = state.find(bookmark_id)
    if bookmark is None:
        return state
    visited = bookmark.model_copy(
        update={
            "visit_count": bookmark.visit_count + 1,
            "last_visited_at": visited_at,
        }
    )
    return replace_bookmark(state, visited)


def select_category(state: AppState, category: str) -> AppState:
    return state.model_copy(update={"category": category})
