import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from datetime import UTC, datetime

from smart_bookmarks.models import state as transitions
from smart_bookmarks.models.bookmark import Bookmark
from smart_bookmarks.models.change import ChangeEvent, ChangeKind
from smart_bookmarks.models.state import AppState
from smart_bookmarks.models.user import User
from smart_bookmarks.schemas.responses import BookmarkView
from smart_bookmarks.services.category import (
    ALL,
    available_categories,
    filter_by_category,
)
from smart_bookmarks.services.ranking import rank_bookmarks, recommend
from smart_bookmarks.services.store import (
    FALLBACK_ORDER,
    PRIMARY_ORDER,
    RemoteSchemaUnavailable,
    RemoteStore,
    StoreError,
)
from smart_bookmarks.utils.url import derive_title

logger = logging.getLogger(__name__)

ChangeChannel = asyncio.Queue[ChangeEvent | None]


class BookmarkError(Exception):
    """Base exception for bookmark-related errors."""

    pass


class BookmarkNotFoundError(BookmarkError):
    """Exception raised when a bookmark is not found."""

    pass


class SyncController:
    """Keeps a local bookmark collection in sync with the remote store.

    The controller owns the collection of one signed-in user. It applies
    local writes through the store, records visits optimistically, ingests
    change events from an inbound channel and refetches on load, visibility
    and focus.

    All mutations happen on the event loop the controller runs on. Remote
    completions that arrive after sign-out or `close()` are dropped.
    """

    def __init__(
        self,
        store: RemoteStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(UTC))
        self._state = transitions.signed_out()
        self._generation = 0
        self._closed = False
        self._hidden = False
        self._consumer: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def user(self) -> User | None:
        return self._state.user

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def view(self, category: str | None = None) -> BookmarkView:
        """Build the ranked, filtered view of the current collection.

        Args:
            category: Filter to apply, defaults to the selected category

        Returns:
            The view. A category no longer present falls back to "All".
        """
        state = self._state
        ranked = rank_bookmarks(state.bookmarks)
        categories = available_categories(state.bookmarks)
        selected = category if category is not None else state.category
        if selected not in categories:
            selected = ALL
        return BookmarkView(
            bookmarks=filter_by_category(ranked, selected),
            recommended=recommend(ranked),
            categories=categories,
            category=selected,
        )

    def select_category(self, category: str) -> None:
        self._state = transitions.select_category(self._state, category)

    async def set_user(self, user: User | None) -> None:
        """Switch the identity the controller acts for.

        Signing out clears the collection and stops change ingestion. A new
        user starts from an empty collection and triggers the initial load.
        """
        current = self._state.user
        if user is None:
            self._generation += 1
            self._state = transitions.signed_out()
            await self._stop_consumer()
            if current is not None:
                logger.info("session_signed_out", extra={"user_id": current.id})
            return

        if current is not None and current.id == user.id:
            return
        self._generation += 1
        self._state = transitions.signed_in(user)
        logger.info("session_signed_in", extra={"user_id": user.id})
        await self.refetch()

    async def refetch(self) -> bool:
        """Replace the collection with a full fetch from the store.

        Falls back to creation order when the ranking columns are missing.
        Any other failure keeps the current collection.

        Returns:
            True if the collection was replaced
        """
        if self._closed or self._state.user is None:
            return False
        generation = self._generation
        try:
            try:
                bookmarks = await self._store.select(PRIMARY_ORDER)
            except RemoteSchemaUnavailable as e:
                logger.info("bookmark_fetch_fallback", extra={"code": e.code})
                bookmarks = await self._store.select(FALLBACK_ORDER)
        except StoreError as e:
            logger.warning("bookmark_fetch_failed", extra={"error": str(e)})
            return False

        if not self._is_current(generation):
            return False
        self._state = transitions.replace_all(self._state, bookmarks)
        logger.debug("bookmark_fetch_applied", extra={"count": len(bookmarks)})
        return True

    async def on_visibility_change(self, hidden: bool) -> bool:
        """Refetch when the document becomes visible after being hidden."""
        was_hidden = self._hidden
        self._hidden = hidden
        if was_hidden and not hidden:
            return await self.refetch()
        return False

    async def on_focus(self) -> bool:
        return await self.refetch()

    async def add_bookmark(self, title: str, url: str) -> Bookmark:
        """Save a new bookmark through the remote store.

        A title shorter than three characters is replaced by the URL host.
        The row echoed by the store is what lands in the collection.

        Args:
            title: User supplied title
            url: Absolute URL to save

        Returns:
            The bookmark as stored remotely

        Raises:
            BookmarkError: If no user is signed in or the store rejects the write
        """
        user = self._state.user
        if self._closed or user is None:
            raise BookmarkError("Cannot add a bookmark without a signed-in user")
        generation = self._generation
        try:
            bookmark = await self._store.insert(derive_title(title, url), url, user.id)
        except StoreError as e:
            raise BookmarkError(f"Failed to create bookmark: {str(e)}")

        if self._is_current(generation):
            self._state = transitions.insert_bookmark(self._state, bookmark)
        return bookmark

    async def delete_bookmark(self, bookmark_id: str) -> None:
        """Delete a bookmark remotely, then locally.

        Raises:
            BookmarkError: If no user is signed in or the store rejects the delete
        """
        if self._closed or self._state.user is None:
            raise BookmarkError("Cannot delete a bookmark without a signed-in user")
        generation = self._generation
        try:
            await self._store.delete(bookmark_id)
        except StoreError as e:
            raise BookmarkError(f"Failed to delete bookmark: {str(e)}")

        if self._is_current(generation):
            self._state = transitions.remove_bookmark(self._state, bookmark_id)

    async def record_visit(self, bookmark_id: str) -> Bookmark:
        """Record a visit locally and submit it in the background.

        The local count is updated at once and kept even if the remote
        update later fails.

        Returns:
            The bookmark with its new visit count

        Raises:
            BookmarkNotFoundError: If the bookmark is not in the collection
        """
        if self._closed:
            raise BookmarkNotFoundError(f"Bookmark {bookmark_id} not found")
        self._state = transitions.record_visit(self._state, bookmark_id, self._clock())
        if (visited := self._state.find(bookmark_id)) is None:
            raise BookmarkNotFoundError(f"Bookmark {bookmark_id} not found")

        task = asyncio.create_task(self._submit_visit(visited))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return visited

    async def visit_recommended(self) -> Bookmark:
        """Record a visit to the recommended bookmark.

        Raises:
            BookmarkNotFoundError: If the collection is empty
        """
        recommended = recommend(rank_bookmarks(self._state.bookmarks))
        if recommended is None:
            raise BookmarkNotFoundError("No bookmark to recommend")
        return await self.record_visit(recommended.id)

    async def _submit_visit(self, bookmark: Bookmark) -> None:
        try:
            await self._store.update(
                bookmark.id,
                {
                    "visit_count": bookmark.visit_count,
                    "last_visited_at": bookmark.last_activity_at.isoformat(),
                },
            )
        except StoreError as e:
            logger.warning(
                "visit_sync_failed",
                extra={"bookmark_id": bookmark.id, "error": str(e)},
            )

    async def wait_pending(self) -> None:
        """Wait for background visit submissions to finish."""
        if self._pending:
            await asyncio.gather(*self._pending)

    def apply_change(self, event: ChangeEvent) -> bool:
        """Merge one change notification into the collection.

        Inserts of known ids, and updates or deletes of unknown ids, are
        no-ops. Events owned by another user are ignored.

        Returns:
            True if the collection changed
        """
        user = self._state.user
        if self._closed or user is None:
            return False
        if event.user_id is not None and event.user_id != user.id:
            logger.debug("change_ignored_foreign", extra={"bookmark_id": event.bookmark_id})
            return False

        before = self._state
        if event.kind == ChangeKind.INSERT:
            self._state = transitions.insert_bookmark(before, event.bookmark)
        elif event.kind == ChangeKind.UPDATE:
            self._state = transitions.replace_bookmark(before, event.bookmark)
        else:
            self._state = transitions.remove_bookmark(before, event.bookmark_id)

        changed = self._state is not before
        if not changed:
            logger.debug(
                "change_noop",
                extra={"kind": event.kind.value, "bookmark_id": event.bookmark_id},
            )
        return changed

    async def run(self, channel: ChangeChannel) -> None:
        """Consume change events until a None sentinel arrives."""
        while True:
            event = await channel.get()
            try:
                if event is None:
                    return
                self.apply_change(event)
            finally:
                channel.task_done()

    def subscribe(self, channel: ChangeChannel) -> None:
        """Start consuming the channel in a background task."""
        if self._consumer is not None and not self._consumer.done():
            raise BookmarkError("Controller is already subscribed")
        self._consumer = asyncio.create_task(self.run(channel))

    async def _stop_consumer(self) -> None:
        consumer, self._consumer = self._consumer, None
        if consumer is None or consumer.done():
            return
        consumer.cancel()
        with suppress(asyncio.CancelledError):
            await consumer

    async def close(self) -> None:
        """Stop change ingestion and drop every later completion.

        In-flight requests still complete, without effect. Background visit
        submissions are drained so they finish before the store is released.
        """
        self._closed = True
        await self._stop_consumer()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
