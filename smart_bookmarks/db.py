from os import environ

import httpx

from smart_bookmarks.services.store import SupabaseStore


class SupabaseManager:
    """Manager for the connection to the hosted Supabase project.

    This class owns the shared HTTP client used by every remote store, so
    connections are pooled across user sessions.

    Attributes:
        _client: The shared httpx client, created on first use
        _url: URL of the Supabase project
        _api_key: Anon key of the Supabase project
    """

    def __init__(self) -> None:
        """Initialize the manager from the environment."""
        self._client: httpx.AsyncClient | None = None
        self._url: str = environ.get("SUPABASE_URL", "")
        self._api_key: str = environ.get("SUPABASE_ANON_KEY", "")

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        Returns:
            The httpx client used for every Supabase request
        """
        if not self._client:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    @property
    def url(self) -> str:
        return self._url

    def store_for(self, access_token: str) -> SupabaseStore:
        """Create a remote store acting with a user's access token.

        Args:
            access_token: The signed-in user's Supabase access token

        Returns:
            A store whose requests are scoped to that user's rows
        """
        return SupabaseStore(self.client, self._url, self._api_key, access_token)

    async def close(self) -> None:
        """Close the shared HTTP client.

        If no client exists, this is a no-op.
        """
        if self._client:
            await self._client.aclose()
            self._client = None
