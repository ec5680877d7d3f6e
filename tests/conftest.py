from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from smart_bookmarks.models.bookmark import Bookmark
from smart_bookmarks.models.user import User
from smart_bookmarks.services.sync import SyncController

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)
VISIT_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

BookmarkFactory = Callable[..., Bookmark]


# Identity fixtures
@pytest.fixture
def test_user() -> User:
    return User(id="11111111-1111-4111-8111-111111111111", email="test@example.com")


@pytest.fixture
def another_test_user() -> User:
    return User(
        id="22222222-2222-4222-8222-222222222222", email="another_test@example.com"
    )


# Test data fixtures
@pytest.fixture
def bookmark_factory(test_user: User) -> BookmarkFactory:
    def make(
        bookmark_id: str,
        visit_count: int = 0,
        created_minutes: int = 0,
        visited_minutes: int | None = None,
        url: str = "https://example.com/",
        title: str = "Example",
        user_id: str | None = None,
    ) -> Bookmark:
        return Bookmark(
            id=bookmark_id,
            title=title,
            url=url,
            created_at=BASE_TIME + timedelta(minutes=created_minutes),
            visit_count=visit_count,
            last_visited_at=(
                BASE_TIME + timedelta(minutes=visited_minutes)
                if visited_minutes is not None
                else None
            ),
            user_id=user_id or test_user.id,
        )

    return make


# Service fixtures
@pytest.fixture
def store() -> AsyncMock:
    mock = AsyncMock()
    mock.select.return_value = []
    return mock


@pytest.fixture
def controller(store: AsyncMock) -> SyncController:
    return SyncController(store, clock=lambda: VISIT_TIME)


@pytest.fixture
async def signed_in_controller(
    controller: SyncController,
    store: AsyncMock,
    test_user: User,
    bookmark_factory: BookmarkFactory,
) -> SyncController:
    store.select.return_value = [
        bookmark_factory("a", visit_count=2, url="https://github.com/org/repo"),
        bookmark_factory("b", visit_count=1, url="https://www.youtube.com/watch"),
        bookmark_factory("c", visit_count=0, url="https://example.com/"),
    ]
    await controller.set_user(test_user)
    store.select.reset_mock()
    return controller
