"""
Session lookup against the primary project's auth service.

Sign-in itself happens in the browser; the API only resolves the bearer token
it receives to a user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from supabase import Client  # type: ignore[import-not-found]

from domain.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    user_id: str
    email: str
    access_token: str


def resolve_user(client: Client, access_token: str) -> AuthenticatedUser:
    """
    Resolve an access token to the signed-in user.

    Raises:
        AuthenticationError: if the token is missing, expired or unknown
    """

    if not access_token:
        raise AuthenticationError("Missing access token")

    try:
        response = client.auth.get_user(access_token)
    except Exception as e:
        logger.info("Access token rejected", extra={"error": str(e)})
        raise AuthenticationError("Session expired or invalid") from e

    user = getattr(response, "user", None)
    if user is None:
        raise AuthenticationError("Session expired or invalid")

    return AuthenticatedUser(
        user_id=str(user.id),
        email=str(getattr(user, "email", None) or ""),
        access_token=access_token,
    )


__all__ = ["AuthenticatedUser", "resolve_user"]
