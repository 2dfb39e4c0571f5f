"""CDN client for unsigned image uploads."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
import pydantic

from gallery_client.domain.payloads import CloudinaryUploadResult
from gallery_client.errors import UpstreamError

_logger = logging.getLogger(__name__)

SERVICE_NAME = "cdn"


class CdnClient(Protocol):
    """Interface for pushing image bytes to a CDN."""

    async def upload(self, data_url: str) -> str:
        """Upload an inline-encoded image and return its delivery URL."""


@dataclass
class HttpxCloudinaryClient(CdnClient):
    """Cloudinary unsigned-preset upload client."""

    cloud_name: str
    upload_preset: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30.0

    @classmethod
    def create(
        cls,
        cloud_name: str,
        upload_preset: str,
        base_url: str,
        timeout: float = 30.0,
    ) -> "HttpxCloudinaryClient":
        """Create a CDN client with a managed httpx session."""
        return cls(
            cloud_name=cloud_name,
            upload_preset=upload_preset,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/{self.cloud_name}/image/upload"

    async def upload(self, data_url: str) -> str:
        """Upload a data URL through the unsigned preset."""
        try:
            response = await self.http_client.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset},
                files={"file": (None, data_url.encode("utf-8"))},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(SERVICE_NAME, f"upload failed: {exc}") from exc

        result = _parse_result(response)
        if not response.is_success:
            message = (
                result.error.message
                if result.error and result.error.message
                else response.reason_phrase or "upload failed"
            )
            raise UpstreamError(SERVICE_NAME, message, response.status_code)
        url = result.delivery_url
        if not url:
            raise UpstreamError(SERVICE_NAME, "response did not include an image URL")
        _logger.info("Uploaded image to CDN: %s", url)
        return url

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_result(response: httpx.Response) -> CloudinaryUploadResult:
    try:
        return CloudinaryUploadResult.model_validate_json(response.text)
    except pydantic.ValidationError:
        return CloudinaryUploadResult()
