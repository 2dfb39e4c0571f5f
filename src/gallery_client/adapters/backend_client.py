"""REST backend API client."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from gallery_client.domain.images import UploadFile
from gallery_client.errors import AuthError, RequestError

_logger = logging.getLogger(__name__)

HTML_PREFIXES = ("<!doctype", "<html")


class BackendClient(Protocol):
    """Interface for the gallery REST backend."""

    async def register(self, username: str, email: str, password: str) -> object:
        """Create an account and return the raw payload."""

    async def login(self, email: str, password: str) -> object:
        """Authenticate and return the raw payload."""

    async def get_current_user(self) -> object:
        """Return the raw payload describing the bearer's user."""

    async def list_images(self, page: int, limit: int) -> object:
        """Return the raw image list payload."""

    async def create_image(
        self, file: UploadFile, uploader: dict[str, object] | None = None
    ) -> object:
        """Upload one file and return the raw created record."""

    async def create_images_bulk(
        self, files: list[UploadFile], uploader: dict[str, object] | None = None
    ) -> object:
        """Upload several files in one request."""

    async def delete_image(self, image_id: str) -> object:
        """Delete an image by id."""


@dataclass
class HttpxBackendClient(BackendClient):
    """Backend client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    token_provider: Callable[[], str | None]
    timeout: float = 15.0

    @classmethod
    def create(
        cls,
        base_url: str,
        token_provider: Callable[[], str | None],
        timeout: float = 15.0,
    ) -> "HttpxBackendClient":
        """Create a backend client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            token_provider=token_provider,
            timeout=timeout,
        )

    async def call(  # noqa: PLR0913
        self,
        endpoint: str,
        method: str = "GET",
        *,
        json_body: object | None = None,
        params: dict[str, object] | None = None,
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
        data: dict[str, str] | None = None,
        auth: bool = True,
    ) -> object:
        """Send a request and return parsed JSON, or text for non-JSON bodies."""
        headers: dict[str, str] = {}
        token = self.token_provider() if auth else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self.http_client.request(
                method,
                url,
                json=json_body,
                params=params,
                files=files,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            _logger.warning("Backend %s %s failed: %s", method, endpoint, exc)
            raise RequestError(
                f"Network error or server unavailable: {exc}"
            ) from exc
        _logger.debug(
            "Backend %s %s -> %s (%s)",
            method,
            endpoint,
            response.status_code,
            response.headers.get("content-type"),
        )
        return parse_response(response)

    async def register(self, username: str, email: str, password: str) -> object:
        """Register a new account."""
        return await self.call(
            "/auth/register",
            "POST",
            json_body={"username": username, "email": email, "password": password},
            auth=False,
        )

    async def login(self, email: str, password: str) -> object:
        """Log in with email and password."""
        return await self.call(
            "/auth/login",
            "POST",
            json_body={"email": email, "password": password},
            auth=False,
        )

    async def get_current_user(self) -> object:
        """Verify the bearer token and fetch the current user."""
        return await self.call("/auth/me")

    async def list_images(self, page: int, limit: int) -> object:
        """Fetch one page of images."""
        return await self.call("/images", params={"page": page, "limit": limit})

    async def create_image(
        self, file: UploadFile, uploader: dict[str, object] | None = None
    ) -> object:
        """Upload a single file as multipart form data."""
        return await self.call(
            "/images",
            "POST",
            files=[("image", _file_part(file))],
            data=_uploader_fields(uploader),
        )

    async def create_images_bulk(
        self, files: list[UploadFile], uploader: dict[str, object] | None = None
    ) -> object:
        """Upload several files in one multipart request."""
        return await self.call(
            "/images/bulk",
            "POST",
            files=[("images", _file_part(file)) for file in files],
            data=_uploader_fields(uploader),
        )

    async def delete_image(self, image_id: str) -> object:
        """Delete an image by id."""
        return await self.call(f"/images/{image_id}", "DELETE")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def parse_response(response: httpx.Response) -> object:
    """Classify a response as JSON, text, or an error."""
    status = response.status_code
    content_type = response.headers.get("content-type", "")
    text = response.text
    if "application/json" in content_type:
        try:
            payload = response.json()
        except ValueError as exc:
            if looks_like_html(text):
                raise _html_error(status) from exc
            raise RequestError(
                f"Failed to parse JSON response ({status}): {exc}", status
            ) from exc
        if not response.is_success:
            raise _status_error(_error_message(payload, response), status)
        return payload

    if response.is_success:
        return text
    if looks_like_html(text):
        raise _html_error(status)
    raise _status_error(
        f"Server error {status} {response.reason_phrase}. "
        "Endpoint may not exist or server returned a non-JSON body.",
        status,
    )


def looks_like_html(text: str) -> bool:
    """Detect an HTML error page by its leading markup."""
    return text.lstrip().lower().startswith(HTML_PREFIXES)


def _html_error(status: int) -> RequestError:
    return _status_error(
        f"Server returned HTML error page ({status}): endpoint may not exist "
        "or route not configured.",
        status,
        html_error_page=True,
    )


def _status_error(
    message: str, status: int, *, html_error_page: bool = False
) -> RequestError:
    if status in {401, 403}:
        return AuthError(message, status, html_error_page=html_error_page)
    return RequestError(message, status, html_error_page=html_error_page)


def _error_message(payload: object, response: httpx.Response) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Request failed: {response.status_code} {response.reason_phrase}"


def _file_part(file: UploadFile) -> tuple[str, bytes, str]:
    return (
        file.filename,
        file.content,
        file.content_type or "application/octet-stream",
    )


def _uploader_fields(uploader: dict[str, object] | None) -> dict[str, str] | None:
    if not uploader:
        return None
    return {"uploadedBy": json.dumps(uploader)}
