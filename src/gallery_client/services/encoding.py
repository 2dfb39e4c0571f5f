"""Helpers for hashing and inline-encoding image bytes."""

import base64
import binascii
import hashlib
import mimetypes

from gallery_client.domain.images import InlineSource


def sha256_hex(content: bytes) -> str:
    """Return the hex SHA-256 digest used for duplicate detection."""
    return hashlib.sha256(content).hexdigest()


def to_data_url(content: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL."""
    resolved = mime_type or detect_mime_type(content)
    encoded = base64.b64encode(content).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def parse_inline(value: str, filename: str | None = None) -> InlineSource | None:
    """Decode a data URL or a bare base64 string, or return None."""
    mime_type: str | None = None
    payload = value.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        if not header.endswith(";base64"):
            return None
        mime_type = header[len("data:") : -len(";base64")] or None
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    if mime_type is None:
        guessed, _ = mimetypes.guess_type(filename or "")
        mime_type = guessed or detect_mime_type(data)
    return InlineSource(data=data, mime_type=mime_type)


def guess_content_type(filename: str, content: bytes) -> str:
    """Guess a MIME type from the filename, then from file signatures."""
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or detect_mime_type(content)


def detect_mime_type(content: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    if content.startswith(b"BM"):
        return "image/bmp"
    if content.startswith(b"DDS "):
        return "image/vnd-ms.dds"
    return "application/octet-stream"
