"""Dependency container wiring for the gallery client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from gallery_client.adapters.backend_client import BackendClient, HttpxBackendClient
from gallery_client.adapters.cdn_client import CdnClient, HttpxCloudinaryClient
from gallery_client.adapters.file_session_store import JsonFileSessionStore
from gallery_client.adapters.mock_host_client import (
    HttpxMockHostClient,
    MockHostClient,
)
from gallery_client.config import Settings
from gallery_client.services.auth import AuthService
from gallery_client.services.images import ImageListingService
from gallery_client.services.session import SessionManager
from gallery_client.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session: SessionManager
    backend_client: BackendClient
    mock_host_client: MockHostClient | None
    cdn_client: CdnClient | None
    auth_service: AuthService
    image_service: ImageListingService
    upload_service: UploadService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timeout = resolved_settings.request_timeout_seconds
    session = SessionManager(JsonFileSessionStore.create(resolved_settings.session_file))
    backend_client = HttpxBackendClient.create(
        base_url=resolved_settings.resolved_api_base_url,
        token_provider=session.token,
        timeout=timeout,
    )
    mock_host_client = (
        HttpxMockHostClient.create(resolved_settings.mockapi_url, timeout=timeout)
        if resolved_settings.mockapi_url
        else None
    )
    cdn_client = (
        HttpxCloudinaryClient.create(
            cloud_name=resolved_settings.cloudinary_cloud_name,
            upload_preset=resolved_settings.cloudinary_upload_preset,
            base_url=resolved_settings.cloudinary_base_url,
            timeout=timeout,
        )
        if resolved_settings.cloudinary_cloud_name
        and resolved_settings.cloudinary_upload_preset
        else None
    )
    static_base_url = resolved_settings.resolved_backend_base_url
    auth_service = AuthService(
        backend_client=backend_client,
        session=session,
        verify_enabled=resolved_settings.verify_session_on_start,
    )
    image_service = ImageListingService(
        data_source=resolved_settings.data_source,
        backend_client=backend_client,
        mock_host_client=mock_host_client,
        static_base_url=static_base_url,
    )
    upload_service = UploadService(
        data_source=resolved_settings.data_source,
        backend_client=backend_client,
        mock_host_client=mock_host_client,
        cdn_client=cdn_client,
        static_base_url=static_base_url,
        dedupe=resolved_settings.dedupe_uploads,
    )

    async def close_resources() -> None:
        await backend_client.close()
        if mock_host_client is not None:
            await mock_host_client.close()
        if cdn_client is not None:
            await cdn_client.close()

    return AppContainer(
        settings=resolved_settings,
        session=session,
        backend_client=backend_client,
        mock_host_client=mock_host_client,
        cdn_client=cdn_client,
        auth_service=auth_service,
        image_service=image_service,
        upload_service=upload_service,
        close_resources=close_resources,
    )
