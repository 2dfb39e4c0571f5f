"""Client for the third-party mock data host."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from gallery_client.errors import UpstreamError

_logger = logging.getLogger(__name__)

SERVICE_NAME = "mock host"


class MockHostClient(Protocol):
    """Interface for the flat image metadata collection."""

    async def list_images(self) -> object:
        """Return the whole collection as raw JSON."""

    async def get_image(self, image_id: str) -> dict[str, object]:
        """Return a single row."""

    async def create_image(self, payload: dict[str, object]) -> dict[str, object]:
        """Create a row and return it."""

    async def delete_image(self, image_id: str) -> None:
        """Delete a row by id."""


@dataclass
class HttpxMockHostClient(MockHostClient):
    """Mock host client implemented with httpx."""

    collection_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15.0

    @classmethod
    def create(cls, collection_url: str, timeout: float = 15.0) -> "HttpxMockHostClient":
        """Create a mock host client with a managed httpx session."""
        return cls(
            collection_url=collection_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def list_images(self) -> object:
        """Fetch every row in the collection."""
        response = await self._send("GET", self.collection_url)
        return _json(response)

    async def get_image(self, image_id: str) -> dict[str, object]:
        """Fetch a row by id."""
        response = await self._send("GET", f"{self.collection_url}/{image_id}")
        return _json_object(response)

    async def create_image(self, payload: dict[str, object]) -> dict[str, object]:
        """Persist an image metadata row."""
        response = await self._send("POST", self.collection_url, json=payload)
        created = _json_object(response)
        _logger.info("Saved image metadata on mock host: id=%s", created.get("id"))
        return created

    async def delete_image(self, image_id: str) -> None:
        """Delete a row by id."""
        await self._send("DELETE", f"{self.collection_url}/{image_id}")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(
        self, method: str, url: str, json: dict[str, object] | None = None
    ) -> httpx.Response:
        try:
            response = await self.http_client.request(
                method, url, json=json, timeout=self.timeout
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(SERVICE_NAME, f"request failed: {exc}") from exc
        if not response.is_success:
            raise UpstreamError(
                SERVICE_NAME,
                response.text or response.reason_phrase,
                response.status_code,
            )
        return response


def _json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(
            SERVICE_NAME, "response was not valid JSON", response.status_code
        ) from exc


def _json_object(response: httpx.Response) -> dict[str, object]:
    payload = _json(response)
    if not isinstance(payload, dict):
        raise UpstreamError(
            SERVICE_NAME, "expected a JSON object", response.status_code
        )
    return payload
