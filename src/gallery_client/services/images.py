"""Image listing, search and deletion."""

import logging
from dataclasses import dataclass
from urllib.parse import quote

from gallery_client.adapters.backend_client import BackendClient
from gallery_client.adapters.mock_host_client import MockHostClient
from gallery_client.config import DataSource
from gallery_client.domain.images import (
    ImagePage,
    ImageRecord,
    InlineSource,
    LinkedSource,
    Pagination,
)
from gallery_client.errors import ConfigurationError, RequestError, UpstreamError
from gallery_client.services.payloads import (
    extract_image_list,
    extract_pagination,
    normalize_backend_image,
    normalize_mock_image,
)

_logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass
class ImageListingService:
    """Reads the gallery from the backend or the mock host."""

    data_source: DataSource
    backend_client: BackendClient
    mock_host_client: MockHostClient | None
    static_base_url: str

    async def list(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> ImagePage:
        """Return one page of images; failures degrade to an empty page."""
        try:
            if self.data_source is DataSource.MOCK_HOST:
                return await self._list_mock_host()
            return await self._list_backend(page, limit)
        except (RequestError, UpstreamError) as exc:
            _logger.warning("Image listing failed: %s", exc)
            return ImagePage(images=[], pagination=None, error=_describe_failure(exc))

    async def search(
        self, query: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> ImagePage:
        """List a page and filter it by name."""
        listed = await self.list(page, limit)
        return ImagePage(
            images=filter_by_name(listed.images, query),
            pagination=listed.pagination,
            error=listed.error,
        )

    async def get(self, image_id: str) -> ImageRecord | None:
        """Fetch a single image row from the mock host."""
        payload = await self._mock_host().get_image(image_id)
        return normalize_mock_image(payload)

    async def delete(self, image_id: str) -> None:
        """Delete an image from the active data source."""
        if self.data_source is DataSource.MOCK_HOST:
            await self._mock_host().delete_image(image_id)
        else:
            await self.backend_client.delete_image(image_id)
        _logger.info("Deleted image %s", image_id)

    async def _list_mock_host(self) -> ImagePage:
        payload = await self._mock_host().list_images()
        if not isinstance(payload, list):
            _logger.warning("Mock host did not return a list")
            return ImagePage(images=[], pagination=None)
        images = [
            record
            for record in (normalize_mock_image(item) for item in payload)
            if record is not None
        ]
        pagination = Pagination(
            page=1, limit=len(images), total_pages=1, total=len(images)
        )
        return ImagePage(images=images, pagination=pagination)

    async def _list_backend(self, page: int, limit: int) -> ImagePage:
        payload = await self.backend_client.list_images(page, limit)
        images = [
            record
            for record in (
                normalize_backend_image(item, self.static_base_url)
                for item in extract_image_list(payload)
            )
            if record is not None
        ]
        return ImagePage(images=images, pagination=extract_pagination(payload))

    def _mock_host(self) -> MockHostClient:
        if self.mock_host_client is None:
            raise ConfigurationError("mockapi_url is not configured")
        return self.mock_host_client


def filter_by_name(images: list[ImageRecord], query: str) -> list[ImageRecord]:
    """Case-insensitive substring match on the display name."""
    needle = query.strip().lower()
    if not needle:
        return list(images)
    return [image for image in images if needle in image.display_name.lower()]


def display_url(record: ImageRecord) -> str:
    """Return a URL a browser can load for the record."""
    source = record.source
    if isinstance(source, InlineSource):
        return source.to_data_url()
    if isinstance(source, LinkedSource):
        version = record.updated_at or record.created_at
        if not version:
            return source.url
        separator = "&" if "?" in source.url else "?"
        return f"{source.url}{separator}v={quote(version, safe='')}"
    raise TypeError(f"Unsupported image source: {type(source).__name__}")


def _describe_failure(exc: Exception) -> str:
    if isinstance(exc, RequestError) and exc.html_error_page:
        return (
            f"{exc} Check that the images route is configured on the backend."
        )
    return str(exc)
