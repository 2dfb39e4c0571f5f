"""Domain models for users and sessions."""

from dataclasses import asdict, dataclass

DEFAULT_ROLE = "user"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class UserRecord:
    """Canonical user record reconciled from backend payloads."""

    id: str | None
    username: str | None
    email: str | None
    role: str = DEFAULT_ROLE

    @property
    def is_admin(self) -> bool:
        """Whether the user may upload and delete images."""
        return self.role == ADMIN_ROLE

    def to_dict(self) -> dict[str, object]:
        """Serialize the record for the session store."""
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, object]) -> "UserRecord":
        """Rebuild a record from the session store."""
        user_id = raw.get("id")
        return cls(
            id=str(user_id) if user_id is not None else None,
            username=_optional_str(raw.get("username")),
            email=_optional_str(raw.get("email")),
            role=_optional_str(raw.get("role")) or DEFAULT_ROLE,
        )


@dataclass(frozen=True)
class Session:
    """Bearer token plus the cached user."""

    token: str | None
    user: UserRecord | None

    @property
    def is_active(self) -> bool:
        """Whether both a token and a cached user are present."""
        return bool(self.token) and self.user is not None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
