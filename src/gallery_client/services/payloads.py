"""Normalization of heterogeneous backend and mock host payloads.

Backends answer with several shapes for the same data. Each field is
resolved through an ordered tuple of rules and the first non-empty match
wins. A rule is ``(scope, dotted_path)``; ``"response"`` is the raw payload
and ``"user"`` is the user object picked by ``USER_OBJECT_PATHS``.
"""

import logging

import pydantic

from gallery_client.domain.images import ImageRecord, ImageSource, LinkedSource, Pagination
from gallery_client.domain.payloads import MockImageItem
from gallery_client.domain.users import DEFAULT_ROLE, UserRecord
from gallery_client.services.encoding import parse_inline

_logger = logging.getLogger(__name__)

Rule = tuple[str, str]

USER_OBJECT_PATHS: tuple[str, ...] = ("data.user", "user")
TOKEN_PATHS: tuple[str, ...] = ("data.token", "token")

ROLE_RULES: tuple[Rule, ...] = (
    ("response", "data.user.role"),
    ("response", "user.role"),
    ("response", "data.role"),
    ("response", "role"),
    ("user", "userRole"),
)
ID_RULES: tuple[Rule, ...] = (
    ("user", "id"),
    ("user", "_id"),
    ("response", "id"),
    ("response", "_id"),
)
USERNAME_RULES: tuple[Rule, ...] = (("user", "username"), ("response", "username"))
EMAIL_RULES: tuple[Rule, ...] = (("user", "email"), ("response", "email"))

# "" addresses the payload itself (a bare list).
IMAGE_LIST_PATHS: tuple[str, ...] = (
    "",
    "data",
    "data.images",
    "data.data",
    "images",
    "results",
)
PAGINATION_PATHS: tuple[str, ...] = ("pagination", "data.pagination")
CREATED_IMAGE_PATHS: tuple[str, ...] = ("data.image", "image", "data")

IMAGE_ID_FIELDS: tuple[str, ...] = ("_id", "id")
IMAGE_NAME_FIELDS: tuple[str, ...] = ("originalname", "originalName", "filename", "name")
IMAGE_INLINE_FIELDS: tuple[str, ...] = ("base64", "base64Data")
IMAGE_URL_FIELDS: tuple[str, ...] = ("url", "path", "imageUrl", "img")
UPLOADER_FIELDS: tuple[str, ...] = ("uploadedBy", "uploadedByUser")


def lookup(payload: object, path: str) -> object | None:
    """Follow a dotted path through nested dicts."""
    if not path:
        return payload
    current = payload
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def is_empty(value: object) -> bool:
    return value is None or value == "" or value is False


def first_present(payload: object, paths: tuple[str, ...]) -> object | None:
    """Return the first non-empty value found along ``paths``."""
    for path in paths:
        value = lookup(payload, path)
        if not is_empty(value):
            return value
    return None


def resolve(rules: tuple[Rule, ...], scopes: dict[str, object]) -> object | None:
    """Apply scoped rules in order and return the first non-empty match."""
    for scope, path in rules:
        value = lookup(scopes.get(scope), path)
        if not is_empty(value):
            return value
    return None


def user_object(response: object) -> dict[str, object]:
    """Pick the nested user object, falling back to the payload itself."""
    found = first_present(response, USER_OBJECT_PATHS)
    if isinstance(found, dict):
        return found
    if isinstance(response, dict):
        return response
    return {}


def extract_token(response: object) -> str | None:
    token = first_present(response, TOKEN_PATHS)
    return str(token) if token is not None else None


def normalize_user(
    response: object,
    *,
    fallback: UserRecord | None = None,
    username: str | None = None,
    email: str | None = None,
) -> UserRecord:
    """Reconcile an auth payload into a user record.

    Missing fields fall back to the submitted values, then to ``fallback``
    (the cached user during verification). Role falls back to the cached role
    and finally to ``"user"``.
    """
    scopes = {"response": response, "user": user_object(response)}
    role = resolve(ROLE_RULES, scopes)
    user_id = resolve(ID_RULES, scopes)
    resolved_username = resolve(USERNAME_RULES, scopes) or username
    resolved_email = resolve(EMAIL_RULES, scopes) or email
    if fallback is not None:
        user_id = user_id if user_id is not None else fallback.id
        resolved_username = resolved_username or fallback.username
        resolved_email = resolved_email or fallback.email
        role = role or fallback.role
    return UserRecord(
        id=str(user_id) if user_id is not None else None,
        username=str(resolved_username) if resolved_username is not None else None,
        email=str(resolved_email) if resolved_email is not None else None,
        role=str(role) if role else DEFAULT_ROLE,
    )


def extract_image_list(response: object) -> list[dict[str, object]]:
    """Locate the image list in a backend payload; never raises."""
    for path in IMAGE_LIST_PATHS:
        value = lookup(response, path)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
    _logger.warning("Could not locate image list in response: %s", type(response).__name__)
    return []


def extract_pagination(response: object) -> Pagination | None:
    raw = first_present(response, PAGINATION_PATHS)
    if not isinstance(raw, dict):
        return None
    page = _as_int(raw.get("page"), 1)
    limit = _as_int(raw.get("limit"), 0)
    total = _as_int(raw.get("total"), 0)
    total_pages = _as_int(raw.get("totalPages", raw.get("total_pages")), 1)
    return Pagination(page=page, limit=limit, total_pages=total_pages, total=total)


def describe_uploader(value: object) -> str | None:
    """Reduce an uploader field to a display string."""
    if isinstance(value, dict):
        found = first_present(value, ("username", "email"))
        return str(found) if found is not None else None
    if is_empty(value):
        return None
    return str(value)


def normalize_backend_image(
    item: dict[str, object], static_base_url: str
) -> ImageRecord | None:
    """Normalize a backend image item; returns None when it has no source."""
    name = first_present(item, IMAGE_NAME_FIELDS)
    display_name = str(name) if name is not None else ""
    source = _image_source(item, static_base_url, display_name)
    if source is None:
        _logger.warning("Image item has neither inline data nor URL: %s", display_name)
        return None
    image_id = first_present(item, IMAGE_ID_FIELDS)
    return ImageRecord(
        id=str(image_id) if image_id is not None else None,
        display_name=display_name,
        source=source,
        uploaded_by=describe_uploader(first_present(item, UPLOADER_FIELDS)),
        created_at=_optional_str(item.get("createdAt")),
        updated_at=_optional_str(item.get("updatedAt")),
        hash=_optional_str(item.get("hash")),
    )


def normalize_mock_image(raw: object) -> ImageRecord | None:
    """Map a mock host row (``name``/``img``) into an image record."""
    try:
        item = MockImageItem.model_validate(raw)
    except pydantic.ValidationError:
        _logger.warning("Skipping malformed mock host item")
        return None
    if not item.img:
        _logger.warning("Mock host item %s has no image URL", item.id)
        return None
    display_name = item.name or ""
    source: ImageSource | None
    if item.img.startswith("data:"):
        source = parse_inline(item.img, display_name)
    else:
        source = LinkedSource(url=item.img)
    if source is None:
        return None
    return ImageRecord(
        id=str(item.id) if item.id is not None else None,
        display_name=display_name,
        source=source,
        uploaded_by=describe_uploader(item.uploadedBy),
        created_at=item.createdAt,
        updated_at=item.updatedAt,
        hash=item.hash,
    )


def resolve_url(url: str, static_base_url: str) -> str:
    """Join relative paths onto the static asset base URL."""
    if url.startswith(("http://", "https://", "data:")):
        return url
    base = static_base_url.rstrip("/")
    if url.startswith("/"):
        return f"{base}{url}"
    return f"{base}/{url}"


def _image_source(
    item: dict[str, object], static_base_url: str, display_name: str
) -> ImageSource | None:
    inline = first_present(item, IMAGE_INLINE_FIELDS)
    if isinstance(inline, str):
        decoded = parse_inline(inline, display_name)
        if decoded is not None:
            return decoded
    url = first_present(item, IMAGE_URL_FIELDS)
    if not isinstance(url, str):
        return None
    if url.startswith("data:"):
        return parse_inline(url, display_name)
    return LinkedSource(url=resolve_url(url, static_base_url))


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
