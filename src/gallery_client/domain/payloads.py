"""Pydantic models for third-party payloads."""

from pydantic import BaseModel, ConfigDict, field_validator


class MockImageItem(BaseModel):
    """Image metadata row stored on the mock host."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    name: str | None = None
    img: str | None = None
    hash: str | None = None
    uploadedBy: dict[str, object] | str | None = None  # noqa: N815
    createdAt: str | None = None  # noqa: N815
    updatedAt: str | None = None  # noqa: N815

    @field_validator("name", "hash", "createdAt", "updatedAt", mode="before")
    @classmethod
    def _stringify_numbers(cls, value: object) -> object:
        # Hosts may store epoch timestamps or numeric names.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CloudinaryErrorDetail(BaseModel):
    """Error detail returned by the CDN."""

    message: str | None = None


class CloudinaryUploadResult(BaseModel):
    """Subset of the CDN upload response."""

    model_config = ConfigDict(extra="allow")

    secure_url: str | None = None
    url: str | None = None
    public_id: str | None = None
    error: CloudinaryErrorDetail | None = None

    @property
    def delivery_url(self) -> str | None:
        return self.secure_url or self.url
