"""Session lifecycle on top of a persistent key-value store."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

from gallery_client.domain.users import Session, UserRecord

TOKEN_KEY = "app_token"
USER_KEY = "app_current_user"

_logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Persistence interface for string key-value entries."""

    def get(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""

    def remove(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class SessionManager:
    """Owns the bearer token and cached user record."""

    store: SessionStore

    def load(self) -> Session:
        """Read the current session from the store."""
        return Session(token=self.token(), user=self.user())

    def token(self) -> str | None:
        return self.store.get(TOKEN_KEY) or None

    def user(self) -> UserRecord | None:
        raw = self.store.get(USER_KEY)
        if not raw:
            return None
        try:
            parsed = json.loads(raw)
        except ValueError:
            _logger.warning("Ignoring unreadable cached user record")
            return None
        if not isinstance(parsed, dict):
            return None
        return UserRecord.from_dict(parsed)

    def set_token(self, token: str | None) -> None:
        if token:
            self.store.set(TOKEN_KEY, token)
        else:
            self.store.remove(TOKEN_KEY)

    def set_user(self, user: UserRecord | None) -> None:
        if user is not None:
            self.store.set(USER_KEY, json.dumps(user.to_dict()))
        else:
            self.store.remove(USER_KEY)

    def save(self, user: UserRecord, token: str | None = None) -> Session:
        """Persist a freshly authenticated user; keeps the token when none is given."""
        if token:
            self.set_token(token)
        self.set_user(user)
        return self.load()

    def clear(self) -> None:
        """Remove the token and cached user together."""
        self.set_user(None)
        self.set_token(None)
