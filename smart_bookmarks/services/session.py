import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from os import environ

from smart_bookmarks.db import SupabaseManager
from smart_bookmarks.models.change import ChangeEvent
from smart_bookmarks.models.user import User
from smart_bookmarks.services.store import SupabaseStore
from smart_bookmarks.services.sync import ChangeChannel, SyncController

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 3600.0


@dataclass
class Session:
    """A signed-in user's controller and its inbound change channel.

    Attributes:
        controller: The user's sync controller
        channel: Inbound change events for the controller
        store: The store the controller writes through
        ready: Task performing the initial load
        last_seen: Clock reading of the latest request for this session
    """

    controller: SyncController
    channel: ChangeChannel
    store: SupabaseStore
    ready: asyncio.Task[None]
    last_seen: float


class SessionRegistry:
    """Registry of sync controllers, one per signed-in user.

    The registry routes change events to the channel of the owning user and
    tears sessions down on sign-out, or once a session has seen no request
    for longer than the idle timeout.
    """

    def __init__(
        self,
        manager: SupabaseManager,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._manager = manager
        self._sessions: dict[str, Session] = {}
        self._clock = clock
        if idle_timeout is None:
            idle_timeout = float(
                environ.get("SESSION_IDLE_TIMEOUT", DEFAULT_IDLE_TIMEOUT)
            )
        self.idle_timeout = idle_timeout

    def get(self, user_id: str) -> SyncController | None:
        session = self._sessions.get(user_id)
        return session.controller if session else None

    async def open(self, user: User, access_token: str) -> SyncController:
        """Get the user's controller, starting a session on first use.

        A new session subscribes to its change channel and performs the
        initial load. An existing session picks up the latest access token.
        Either way the controller is returned only once the initial load
        has finished. Idle sessions are evicted first, so a user returning
        after the idle timeout starts a fresh session.

        Args:
            user: The authenticated user
            access_token: The token the user authenticated with

        Returns:
            The user's sync controller
        """
        await self.evict_idle()
        now = self._clock()
        if session := self._sessions.get(user.id):
            session.store.access_token = access_token
            session.last_seen = now
        else:
            store = self._manager.store_for(access_token)
            controller = SyncController(store)
            channel: ChangeChannel = asyncio.Queue()
            controller.subscribe(channel)
            ready = asyncio.create_task(controller.set_user(user))
            session = Session(controller, channel, store, ready, now)
            self._sessions[user.id] = session
        await asyncio.shield(session.ready)
        return session.controller

    async def evict_idle(self) -> int:
        """Sign out every session idle for longer than the idle timeout.

        Returns:
            Number of sessions evicted
        """
        deadline = self._clock() - self.idle_timeout
        idle = [
            user_id
            for user_id, session in self._sessions.items()
            if session.last_seen < deadline
        ]
        for user_id in idle:
            logger.info("session_evicted_idle", extra={"user_id": user_id})
            await self.sign_out(user_id)
        return len(idle)

    def publish(self, event: ChangeEvent) -> int:
        """Route a change event to the sessions it may concern.

        Events naming a user go to that user's session only. Events without
        an owner go to every session, where unknown ids are no-ops.

        Returns:
            Number of sessions the event was delivered to
        """
        if event.user_id is not None:
            session = self._sessions.get(event.user_id)
            targets = [session] if session else []
        else:
            targets = list(self._sessions.values())
        for session in targets:
            session.channel.put_nowait(event)
        logger.debug(
            "change_published",
            extra={"bookmark_id": event.bookmark_id, "sessions": len(targets)},
        )
        return len(targets)

    async def sign_out(self, user_id: str) -> bool:
        """Clear and close a user's session.

        Returns:
            True if a session was open
        """
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        await session.ready
        await session.controller.set_user(None)
        await session.controller.close()
        return True

    async def close_all(self) -> None:
        for user_id in list(self._sessions):
            await self.sign_out(user_id)
