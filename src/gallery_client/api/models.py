"""Pydantic request bodies and response helpers for the gateway."""

from dataclasses import asdict

from pydantic import BaseModel

from gallery_client.domain.images import ImagePage, ImageRecord, InlineSource, UploadSummary
from gallery_client.domain.users import UserRecord
from gallery_client.services.images import display_url


class RegisterRequest(BaseModel):
    """Account registration payload."""

    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """Login payload."""

    email: str
    password: str


def user_payload(user: UserRecord | None) -> dict[str, object] | None:
    if user is None:
        return None
    return user.to_dict()


def image_payload(record: ImageRecord) -> dict[str, object]:
    """Serialize an image with a browser-loadable URL."""
    return {
        "id": record.id,
        "display_name": record.display_name,
        "source_kind": "inline" if isinstance(record.source, InlineSource) else "linked",
        "url": display_url(record),
        "uploaded_by": record.uploaded_by,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "hash": record.hash,
        "renderable": record.is_web_renderable,
    }


def page_payload(page: ImagePage) -> dict[str, object]:
    return {
        "images": [image_payload(record) for record in page.images],
        "pagination": asdict(page.pagination) if page.pagination else None,
        "error": page.error,
    }


def summary_payload(summary: UploadSummary) -> dict[str, object]:
    return {
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "images": [image_payload(record) for record in summary.records],
        "errors": [
            {"filename": filename, "error": message}
            for filename, message in summary.errors
        ],
    }
