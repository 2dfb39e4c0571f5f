"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from gallery_client.adapters.backend_client import BackendClient
from gallery_client.adapters.cdn_client import CdnClient
from gallery_client.adapters.mock_host_client import MockHostClient
from gallery_client.config import DataSource, Settings
from gallery_client.containers import AppContainer
from gallery_client.domain.images import UploadFile
from gallery_client.domain.users import UserRecord
from gallery_client.errors import UpstreamError
from gallery_client.services.auth import AuthService
from gallery_client.services.images import ImageListingService
from gallery_client.services.session import SessionManager, SessionStore
from gallery_client.services.uploads import UploadService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@dataclass
class InMemorySessionStore(SessionStore):
    """Dict-backed session store for tests."""

    entries: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def set(self, key: str, value: str) -> None:
        self.entries[key] = value

    def remove(self, key: str) -> None:
        self.entries.pop(key, None)


@dataclass
class FakeBackendClient(BackendClient):
    """Backend fake returning canned payloads or raising canned errors."""

    auth_response: object = field(
        default_factory=lambda: {
            "data": {
                "user": {"id": 1, "username": "a", "email": "a@x.com", "role": "admin"},
                "token": "T",
            }
        }
    )
    me_response: object = field(default_factory=dict)
    me_error: Exception | None = None
    list_response: object = field(default_factory=list)
    list_error: Exception | None = None
    created: list[UploadFile] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    async def register(self, username: str, email: str, password: str) -> object:
        self.calls.append("register")
        return self.auth_response

    async def login(self, email: str, password: str) -> object:
        self.calls.append("login")
        return self.auth_response

    async def get_current_user(self) -> object:
        self.calls.append("me")
        if self.me_error is not None:
            raise self.me_error
        return self.me_response

    async def list_images(self, page: int, limit: int) -> object:
        self.calls.append(f"list:{page}:{limit}")
        if self.list_error is not None:
            raise self.list_error
        return self.list_response

    async def create_image(
        self, file: UploadFile, uploader: dict[str, object] | None = None
    ) -> object:
        self.calls.append("create")
        self.created.append(file)
        return {
            "success": True,
            "data": {
                "_id": f"b{len(self.created)}",
                "originalname": file.filename,
                "url": f"/uploads/{file.filename}",
                "uploadedBy": uploader,
            },
        }

    async def create_images_bulk(
        self, files: list[UploadFile], uploader: dict[str, object] | None = None
    ) -> object:
        self.calls.append("bulk")
        self.created.extend(files)
        return {
            "data": {
                "images": [
                    {"_id": f"b{index}", "filename": file.filename, "path": file.filename}
                    for index, file in enumerate(files)
                ]
            }
        }

    async def delete_image(self, image_id: str) -> object:
        self.calls.append("delete")
        self.deleted.append(image_id)
        return {"success": True}


@dataclass
class InMemoryMockHostClient(MockHostClient):
    """Mock host fake keeping rows in a list."""

    rows: list[dict[str, object]] = field(default_factory=list)
    fail_create: bool = False
    fail_list: bool = False
    calls: list[str] = field(default_factory=list)

    async def list_images(self) -> object:
        self.calls.append("list")
        if self.fail_list:
            raise UpstreamError("mock host", "unavailable", 503)
        return list(self.rows)

    async def get_image(self, image_id: str) -> dict[str, object]:
        self.calls.append("get")
        for row in self.rows:
            if row.get("id") == image_id:
                return row
        raise UpstreamError("mock host", "Not found", 404)

    async def create_image(self, payload: dict[str, object]) -> dict[str, object]:
        self.calls.append("create")
        if self.fail_create:
            raise UpstreamError("mock host", "quota exceeded", 500)
        row = {**payload, "id": str(len(self.rows) + 1)}
        self.rows.append(row)
        return row

    async def delete_image(self, image_id: str) -> None:
        self.calls.append("delete")
        self.rows = [row for row in self.rows if row.get("id") != image_id]


@dataclass
class FakeCdnClient(CdnClient):
    """CDN fake that records uploads."""

    uploads: list[str] = field(default_factory=list)
    fail_with: str | None = None

    async def upload(self, data_url: str) -> str:
        if self.fail_with is not None:
            raise UpstreamError("cdn", self.fail_with, 400)
        self.uploads.append(data_url)
        return f"https://cdn.test/image/{len(self.uploads)}.png"


def make_file(name: str = "cat.png", content: bytes = PNG_BYTES) -> UploadFile:
    return UploadFile(filename=name, content=content)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url="https://backend.test/api",
        mockapi_url="https://mock.test/images",
        cloudinary_cloud_name="demo",
        cloudinary_upload_preset="unsigned",
        session_file=str(tmp_path / "session.json"),
    )


@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager(InMemorySessionStore())


@pytest.fixture
def admin_user() -> UserRecord:
    return UserRecord(id="1", username="a", email="a@x.com", role="admin")


@pytest.fixture
def backend_client() -> FakeBackendClient:
    return FakeBackendClient()


@pytest.fixture
def mock_host_client() -> InMemoryMockHostClient:
    return InMemoryMockHostClient()


@pytest.fixture
def cdn_client() -> FakeCdnClient:
    return FakeCdnClient()


@pytest.fixture
def container(
    settings: Settings,
    session_manager: SessionManager,
    backend_client: FakeBackendClient,
    mock_host_client: InMemoryMockHostClient,
    cdn_client: FakeCdnClient,
) -> AppContainer:
    auth_service = AuthService(backend_client=backend_client, session=session_manager)
    image_service = ImageListingService(
        data_source=DataSource.MOCK_HOST,
        backend_client=backend_client,
        mock_host_client=mock_host_client,
        static_base_url="https://backend.test",
    )
    upload_service = UploadService(
        data_source=DataSource.MOCK_HOST,
        backend_client=backend_client,
        mock_host_client=mock_host_client,
        cdn_client=cdn_client,
        static_base_url="https://backend.test",
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session=session_manager,
        backend_client=backend_client,
        mock_host_client=mock_host_client,
        cdn_client=cdn_client,
        auth_service=auth_service,
        image_service=image_service,
        upload_service=upload_service,
        close_resources=close_resources,
    )
