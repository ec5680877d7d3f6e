import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from smart_bookmarks.models.bookmark import Bookmark

logger = logging.getLogger(__name__)

BOOKMARKS_PATH = "/rest/v1/bookmarks"

# Full ranking order, and the reduced order used when the ranking columns
# are missing from the remote schema.
PRIMARY_ORDER: tuple[str, ...] = ("visit_count.desc", "created_at.desc")
FALLBACK_ORDER: tuple[str, ...] = ("created_at.desc",)

# PostgREST / Postgres error codes for columns or relations the schema
# cache does not know about.
SCHEMA_ERROR_CODES = frozenset({"42703", "42P01", "PGRST200", "PGRST204"})


class StoreError(Exception):
    """Base exception for remote store errors."""

    pass


class RemoteRequestFailed(StoreError):
    """Exception raised when a remote request fails.

    Attributes:
        status_code: HTTP status of the response, None for transport errors
        code: Error code reported by the store, if any
    """

    def __init__(
        self, message: str, status_code: int | None = None, code: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class RemoteSchemaUnavailable(RemoteRequestFailed):
    """Exception raised when a requested column is not in the remote schema."""

    pass


class RemoteStore(Protocol):
    async def select(self, order: Sequence[str]) -> list[Bookmark]: ...

    async def insert(self, title: str, url: str, user_id: str) -> Bookmark: ...

    async def update(self, bookmark_id: str, fields: dict[str, Any]) -> Bookmark | None: ...

    async def delete(self, bookmark_id: str) -> None: ...


class SupabaseStore:
    """Remote store backed by the Supabase REST API.

    Every request is sent with the user's access token, so row-level
    security limits it to rows owned by that user.

    Attributes:
        base_url: Supabase project URL
        api_key: Project anon key
        access_token: The signed-in user's access token
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        access_token: str,
    ) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token}",
            "Prefer": "return=representation",
        }

    async def _request(
        self,
        method: str,
        params: dict[str, str],
        json: Any = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                f"{self.base_url}{BOOKMARKS_PATH}",
                params=params,
                json=json,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise RemoteRequestFailed(f"{method} bookmarks failed: {str(e)}")
        if response.is_error:
            raise self._error_from_response(method, response)
        return response

    def _error_from_response(
        self, method: str, response: httpx.Response
    ) -> RemoteRequestFailed:
        code = None
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message

        error_class = (
            RemoteSchemaUnavailable if code in SCHEMA_ERROR_CODES else RemoteRequestFailed
        )
        return error_class(
            f"{method} bookmarks failed ({response.status_code}): {message}",
            status_code=response.status_code,
            code=code,
        )

    async def select(self, order: Sequence[str]) -> list[Bookmark]:
        """Fetch every bookmark visible to the user.

        Args:
            order: PostgREST order terms such as "created_at.desc"

        Returns:
            The bookmarks in the requested order

        Raises:
            RemoteSchemaUnavailable: If an order column does not exist
            RemoteRequestFailed: If the request fails for any other reason
        """
        response = await self._request(
            "GET", params={"select": "*", "order": ",".join(order)}
        )
        return [Bookmark(**row) for row in response.json()]

    async def insert(self, title: str, url: str, user_id: str) -> Bookmark:
        """Insert a bookmark and return the row as stored.

        Raises:
            RemoteRequestFailed: If the insert is rejected
        """
        response = await self._request(
            "POST",
            params={"select": "*"},
            json=[{"title": title, "url": url, "user_id": user_id}],
        )
        rows = response.json()
        if not rows:
            raise RemoteRequestFailed("POST bookmarks returned no row")
        logger.info("bookmark_inserted", extra={"bookmark_id": rows[0].get("id")})
        return Bookmark(**rows[0])

    async def update(self, bookmark_id: str, fields: dict[str, Any]) -> Bookmark | None:
        """Update some fields of a bookmark.

        Args:
            bookmark_id: ID of the bookmark to update
            fields: Column values to set, JSON serializable

        Returns:
            The updated row, or None if no row matched

        Raises:
            RemoteRequestFailed: If the update is rejected
        """
        response = await self._request(
            "PATCH",
            params={"id": f"eq.{bookmark_id}", "select": "*"},
            json=fields,
        )
        rows = response.json()
        return Bookmark(**rows[0]) if rows else None

    async def delete(self, bookmark_id: str) -> None:
        """Delete a bookmark.

        Raises:
            RemoteRequestFailed: If the delete is rejected
        """
        await self._request("DELETE", params={"id": f"eq.{bookmark_id}"})
        logger.info("bookmark_deleted", extra={"bookmark_id": bookmark_id})
