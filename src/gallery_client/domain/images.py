"""Domain models for gallery images."""

import base64
from dataclasses import dataclass, field
from pathlib import Path

WEB_RENDERABLE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "bmp", "svg"})


@dataclass(frozen=True)
class LinkedSource:
    """Image bytes live at an absolute URL."""

    url: str


@dataclass(frozen=True)
class InlineSource:
    """Image bytes are embedded in the record."""

    data: bytes
    mime_type: str

    def to_data_url(self) -> str:
        """Encode the payload as a base64 data URL."""
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"


ImageSource = LinkedSource | InlineSource


@dataclass(frozen=True)
class ImageRecord:
    """Canonical gallery image."""

    id: str | None
    display_name: str
    source: ImageSource
    uploaded_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    hash: str | None = None

    @property
    def extension(self) -> str:
        return Path(self.display_name).suffix.lstrip(".").lower()

    @property
    def is_web_renderable(self) -> bool:
        """Whether browsers can display the image directly."""
        if not self.extension:
            return True
        return self.extension in WEB_RENDERABLE_EXTENSIONS


@dataclass(frozen=True)
class Pagination:
    """Paging information returned alongside a list."""

    page: int
    limit: int
    total_pages: int
    total: int


@dataclass(frozen=True)
class ImagePage:
    """One page of images; ``error`` is set when the read degraded."""

    images: list[ImageRecord]
    pagination: Pagination | None = None
    error: str | None = None


@dataclass(frozen=True)
class UploadFile:
    """File content selected for upload."""

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadFile":
        """Read a file from disk."""
        resolved = Path(path)
        return cls(filename=resolved.name, content=resolved.read_bytes())


@dataclass
class UploadSummary:
    """Aggregate outcome of a multi-file upload."""

    records: list[ImageRecord] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.errors)
