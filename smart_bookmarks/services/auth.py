import logging
from os import environ
from typing import Any, cast

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError
from pydantic import ValidationError

from smart_bookmarks.models.user import User

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base exception for auth-related errors."""

    pass


class InvalidTokenError(AuthError):
    """Exception raised when a token is invalid."""

    pass


class TokenExpiredError(AuthError):
    """Exception raised when a token has expired."""

    pass


class AuthService:
    """Service for validating Supabase Auth sessions.

    Supabase Auth performs the OAuth flow and issues signed access tokens.
    This service checks those tokens and turns their claims into a `User`.

    Attributes:
        url: Supabase project URL
        api_key: Project anon key
        jwt_secret: Secret the project signs access tokens with
        audience: Expected token audience
        algorithms: List of supported JWT algorithms
    """

    def __init__(self) -> None:
        """Initialize the auth service with Supabase configuration."""
        self.url: str = environ.get("SUPABASE_URL", "").rstrip("/")
        self.api_key: str = environ.get("SUPABASE_ANON_KEY", "")
        self.jwt_secret: str = environ.get("SUPABASE_JWT_SECRET", "")
        self.audience: str = "authenticated"
        self.algorithms: list[str] = ["HS256"]

    def validate_token(self, token: str) -> dict[str, Any]:
        """Validate a Supabase access token.

        Args:
            token: The JWT token to validate

        Returns:
            The decoded token payload

        Raises:
            InvalidTokenError: If token is invalid
            TokenExpiredError: If token has expired
        """
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=self.algorithms,
                audience=self.audience,
            )
            return cast(dict[str, Any], payload)
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTClaimsError as e:
            raise InvalidTokenError(f"Invalid claims: {str(e)}")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    async def get_current_user(self, token: str) -> User:
        """Get the signed-in user from an access token.

        Args:
            token: The JWT token string

        Returns:
            The user identified by the token

        Raises:
            InvalidTokenError: If token is invalid or lacks an identity
            TokenExpiredError: If token has expired
        """
        payload = self.validate_token(token)
        try:
            return User(id=payload["sub"], email=payload["email"])
        except (KeyError, ValidationError) as e:
            raise InvalidTokenError(f"Token does not identify a user: {str(e)}")

    async def sign_out(self, token: str) -> None:
        """Revoke the user's refresh tokens at the identity provider.

        Local session state is cleared by the caller whatever the outcome,
        so a failed revocation is only logged.

        Args:
            token: The user's access token
        """
        url = f"{self.url}/auth/v1/logout"
        headers = {"apikey": self.api_key, "Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("sign_out_revoke_failed", extra={"error": str(e)})
