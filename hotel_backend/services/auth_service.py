"""Admin token session that decides whether a caller is privileged."""

from __future__ import annotations

import secrets
from typing import Optional

from hotel_backend.domain.models import Actor
from hotel_backend.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided token is invalid."""


class MissingActorError(AuthenticationError):
    """Raised when the caller did not identify itself."""


class AuthService:
    """Exchanges the admin token for a session token and builds actors."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._session_token: str | None = None

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def login(self, provided_admin_token: str) -> str:
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            raise InvalidAdminTokenError("Invalid admin token")
        self._session_token = secrets.token_urlsafe(32)
        return self._session_token

    def validate_bearer_token(self, bearer_token: str) -> None:
        if self._session_token is None:
            raise InvalidAdminTokenError("No active session. Login first.")
        if not secrets.compare_digest(bearer_token, self._session_token):
            raise InvalidAdminTokenError("Invalid bearer token")

    def resolve_actor(self, actor_id: Optional[str], bearer_token: Optional[str]) -> Actor:
        """Build the actor context; a bearer token must be a valid admin session."""
        identity = (actor_id or "").strip()
        if not identity:
            raise MissingActorError("X-Actor-Id header is required")
        if bearer_token is None:
            return Actor(actor_id=identity, is_privileged=False)
        self.validate_bearer_token(bearer_token)
        return Actor(actor_id=identity, is_privileged=True)
