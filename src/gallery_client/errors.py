"""Error taxonomy shared by adapters and services."""


class GalleryError(Exception):
    """Base class for gallery client errors."""


class ConfigurationError(GalleryError):
    """A required setting for the selected mode is missing."""


class ValidationError(GalleryError):
    """A file was rejected before any network call was made."""

    def __init__(self, reason: str, filename: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.filename = filename


class DuplicateImageError(GalleryError):
    """An image with the same content or name already exists."""


class RequestError(GalleryError):
    """Backend call failed with a non-2xx status or an unreadable body."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        *,
        html_error_page: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.html_error_page = html_error_page

    @property
    def is_not_found(self) -> bool:
        """Whether the error signals a missing endpoint or resource."""
        return self.status == 404 or "not found" in self.message.lower()

    @property
    def is_unauthorized(self) -> bool:
        """Whether the error signals a rejected credential."""
        return self.status in {401, 403} or "unauthorized" in self.message.lower()


class AuthError(RequestError):
    """Backend rejected the bearer token (401/403)."""


class UpstreamError(GalleryError):
    """Third-party CDN or mock host call failed."""

    def __init__(self, service: str, message: str, status: int | None = None) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.status = status
