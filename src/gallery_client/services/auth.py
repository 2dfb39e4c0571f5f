"""Registration, login and session verification."""

import logging
from dataclasses import dataclass
from enum import Enum

from gallery_client.adapters.backend_client import BackendClient
from gallery_client.domain.users import Session, UserRecord
from gallery_client.errors import RequestError
from gallery_client.services.payloads import extract_token, normalize_user
from gallery_client.services.session import SessionManager

_logger = logging.getLogger(__name__)


class VerifyOutcome(str, Enum):
    """Result of verifying the cached session against the backend."""

    NO_SESSION = "no_session"
    SKIPPED = "skipped"
    REFRESHED = "refreshed"
    ENDPOINT_MISSING = "endpoint_missing"
    INVALIDATED = "invalidated"
    KEPT = "kept"


@dataclass
class AuthService:
    """Authenticates against the backend and maintains the session."""

    backend_client: BackendClient
    session: SessionManager
    verify_enabled: bool = True

    @property
    def current_user(self) -> UserRecord | None:
        """Return the cached user, with or without a stored token."""
        return self.session.user()

    async def register(self, username: str, email: str, password: str) -> UserRecord:
        """Create an account and start a session."""
        response = await self.backend_client.register(username, email, password)
        user = normalize_user(response, username=username, email=email)
        self.session.save(user, extract_token(response))
        _logger.info("Registered user %s with role %s", user.username, user.role)
        return user

    async def login(self, email: str, password: str) -> UserRecord:
        """Log in and cache the reconciled user record."""
        response = await self.backend_client.login(email, password)
        user = normalize_user(response, email=email)
        self.session.save(user, extract_token(response))
        _logger.info("Logged in user %s with role %s", user.username, user.role)
        return user

    def logout(self) -> None:
        """Drop the token and cached user."""
        self.session.clear()

    async def verify_session(self) -> tuple[VerifyOutcome, Session]:
        """Refresh the cached user from the backend.

        Only an explicit 401/403 logs the user out. A missing verification
        endpoint (404) and ambiguous failures such as network errors keep the
        cached session unchanged, so a transient problem never downgrades the
        cached role.
        """
        cached = self.session.load()
        if not cached.is_active or cached.user is None:
            return VerifyOutcome.NO_SESSION, cached
        if not self.verify_enabled:
            return VerifyOutcome.SKIPPED, cached

        try:
            response = await self.backend_client.get_current_user()
        except RequestError as exc:
            if exc.is_not_found:
                _logger.warning("Session endpoint not found; keeping cached user")
                return VerifyOutcome.ENDPOINT_MISSING, cached
            if exc.is_unauthorized:
                _logger.warning("Session rejected by backend (%s); logging out", exc.status)
                self.session.clear()
                return VerifyOutcome.INVALIDATED, self.session.load()
            _logger.warning("Session verification failed, keeping cached user: %s", exc)
            return VerifyOutcome.KEPT, cached

        user = normalize_user(response, fallback=cached.user)
        self.session.set_user(user)
        return VerifyOutcome.REFRESHED, self.session.load()
