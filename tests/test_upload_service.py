"""Tests for upload validation and the upload flows."""

import asyncio
import hashlib

import pytest

from gallery_client.config import DataSource
from gallery_client.domain.images import LinkedSource, UploadFile
from gallery_client.domain.users import UserRecord
from gallery_client.errors import (
    ConfigurationError,
    DuplicateImageError,
    UpstreamError,
    ValidationError,
)
from gallery_client.services.images import ImageListingService
from gallery_client.services.uploads import MAX_UPLOAD_BYTES, UploadService, validate_file
from tests.conftest import (
    PNG_BYTES,
    FakeBackendClient,
    FakeCdnClient,
    InMemoryMockHostClient,
    make_file,
)

ADMIN = UserRecord(id="1", username="a", email="a@x.com", role="admin")


def _mock_mode(
    mock_host: InMemoryMockHostClient,
    cdn: FakeCdnClient,
    backend: FakeBackendClient | None = None,
    dedupe: bool = False,
) -> UploadService:
    return UploadService(
        data_source=DataSource.MOCK_HOST,
        backend_client=backend or FakeBackendClient(),
        mock_host_client=mock_host,
        cdn_client=cdn,
        static_base_url="http://localhost:5000",
        dedupe=dedupe,
    )


def _backend_mode(backend: FakeBackendClient) -> UploadService:
    return UploadService(
        data_source=DataSource.BACKEND,
        backend_client=backend,
        mock_host_client=None,
        cdn_client=None,
        static_base_url="http://localhost:5000",
    )


@pytest.mark.parametrize(
    "upload",
    [
        UploadFile(filename="notes.txt", content=b"hello"),
        UploadFile(filename="archive.tar.gz", content=b"x"),
        UploadFile(filename="noextension", content=b"x"),
        UploadFile(filename="", content=b"x"),
        UploadFile(filename="huge.png", content=b"\x00" * (MAX_UPLOAD_BYTES + 1)),
    ],
)
def test_invalid_files_are_rejected_before_any_request(upload: UploadFile) -> None:
    mock_host = InMemoryMockHostClient()
    cdn = FakeCdnClient()
    backend = FakeBackendClient()

    with pytest.raises(ValidationError):
        asyncio.run(_mock_mode(mock_host, cdn, backend).upload(upload, ADMIN))
    with pytest.raises(ValidationError):
        asyncio.run(_backend_mode(backend).upload(upload, ADMIN))

    assert mock_host.calls == []
    assert cdn.uploads == []
    assert backend.calls == []


def test_validate_file_accepts_allowed_extensions_case_insensitively() -> None:
    for name in ("a.JPG", "b.jpeg", "c.png", "d.gif", "e.webp", "f.bmp", "g.dds"):
        validate_file(UploadFile(filename=name, content=b"x"))


def test_validate_file_reads_extension_after_last_dot() -> None:
    validate_file(UploadFile(filename=".png", content=b"x"))
    validate_file(UploadFile(filename="holiday.v2.JPEG", content=b"x"))

    with pytest.raises(ValidationError):
        validate_file(UploadFile(filename="photo.", content=b"x"))


def test_validate_file_accepts_exact_size_limit() -> None:
    validate_file(UploadFile(filename="edge.png", content=b"\x00" * MAX_UPLOAD_BYTES))


def test_cdn_upload_persists_metadata_with_hash() -> None:
    mock_host = InMemoryMockHostClient()
    cdn = FakeCdnClient()

    record = asyncio.run(_mock_mode(mock_host, cdn).upload(make_file("cat.png"), ADMIN))

    assert cdn.uploads[0].startswith("data:image/png;base64,")
    row = mock_host.rows[0]
    assert row["name"] == "cat.png"
    assert row["img"] == "https://cdn.test/image/1.png"
    assert row["hash"] == hashlib.sha256(PNG_BYTES).hexdigest()
    assert row["uploadedBy"] == {"_id": "1", "username": "a", "email": "a@x.com"}
    assert row["createdAt"] == row["updatedAt"]
    assert record.display_name == "cat.png"
    assert record.source == LinkedSource(url="https://cdn.test/image/1.png")
    assert record.uploaded_by == "a"


def test_cdn_failure_writes_no_metadata() -> None:
    mock_host = InMemoryMockHostClient()
    cdn = FakeCdnClient(fail_with="Invalid image file")

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(_mock_mode(mock_host, cdn).upload(make_file(), ADMIN))

    assert excinfo.value.message == "Invalid image file"
    assert mock_host.calls == []


def test_metadata_failure_leaves_cdn_file_in_place() -> None:
    mock_host = InMemoryMockHostClient(fail_create=True)
    cdn = FakeCdnClient()

    with pytest.raises(UpstreamError):
        asyncio.run(_mock_mode(mock_host, cdn).upload(make_file(), ADMIN))

    assert len(cdn.uploads) == 1
    assert mock_host.rows == []


def test_mock_mode_requires_cdn_configuration() -> None:
    service = UploadService(
        data_source=DataSource.MOCK_HOST,
        backend_client=FakeBackendClient(),
        mock_host_client=InMemoryMockHostClient(),
        cdn_client=None,
        static_base_url="http://localhost:5000",
    )

    with pytest.raises(ConfigurationError):
        asyncio.run(service.upload(make_file()))


def test_duplicate_check_rejects_same_content() -> None:
    digest = hashlib.sha256(PNG_BYTES).hexdigest()
    mock_host = InMemoryMockHostClient(
        rows=[{"id": "1", "name": "other.png", "img": "https://x", "hash": digest}]
    )
    cdn = FakeCdnClient()

    with pytest.raises(DuplicateImageError):
        asyncio.run(_mock_mode(mock_host, cdn, dedupe=True).upload(make_file("new.png")))

    assert cdn.uploads == []


def test_duplicate_check_rejects_same_name() -> None:
    mock_host = InMemoryMockHostClient(
        rows=[{"id": "1", "name": " Cat.png ", "img": "https://x", "hash": "other"}]
    )

    with pytest.raises(DuplicateImageError):
        asyncio.run(
            _mock_mode(mock_host, FakeCdnClient(), dedupe=True).upload(make_file("cat.png"))
        )


def test_duplicate_check_is_skipped_when_listing_fails() -> None:
    mock_host = InMemoryMockHostClient(fail_list=True)
    cdn = FakeCdnClient()

    asyncio.run(_mock_mode(mock_host, cdn, dedupe=True).upload(make_file()))

    assert len(cdn.uploads) == 1


def test_duplicates_allowed_when_check_disabled() -> None:
    mock_host = InMemoryMockHostClient()
    cdn = FakeCdnClient()
    service = _mock_mode(mock_host, cdn)

    asyncio.run(service.upload(make_file()))
    asyncio.run(service.upload(make_file()))

    assert len(mock_host.rows) == 2


def test_backend_upload_returns_normalized_record() -> None:
    backend = FakeBackendClient()

    record = asyncio.run(_backend_mode(backend).upload(make_file("dog.png"), ADMIN))

    assert backend.created[0].content_type == "image/png"
    assert record.id == "b1"
    assert record.display_name == "dog.png"
    assert record.source == LinkedSource(url="http://localhost:5000/uploads/dog.png")
    assert record.uploaded_by == "a"


def test_upload_many_counts_partial_failures() -> None:
    mock_host = InMemoryMockHostClient()
    cdn = FakeCdnClient()
    files = [
        make_file("one.png"),
        UploadFile(filename="bad.txt", content=b"x"),
        make_file("two.jpg"),
    ]

    summary = asyncio.run(_mock_mode(mock_host, cdn).upload_many(files, ADMIN))

    assert summary.succeeded == 2
    assert summary.failed == 1
    assert summary.errors[0][0] == "bad.txt"
    assert sorted(row["name"] for row in mock_host.rows) == ["one", "two"]


def test_upload_bulk_sends_one_request() -> None:
    backend = FakeBackendClient()

    records = asyncio.run(
        _backend_mode(backend).upload_bulk([make_file("a.png"), make_file("b.png")], ADMIN)
    )

    assert backend.calls == ["bulk"]
    assert [record.display_name for record in records] == ["a.png", "b.png"]


def test_upload_bulk_validates_every_file_first() -> None:
    backend = FakeBackendClient()

    with pytest.raises(ValidationError):
        asyncio.run(
            _backend_mode(backend).upload_bulk(
                [make_file("a.png"), UploadFile(filename="b.exe", content=b"x")]
            )
        )

    assert backend.calls == []


def test_upload_then_list_round_trip() -> None:
    mock_host = InMemoryMockHostClient()
    cdn = FakeCdnClient()
    uploads = _mock_mode(mock_host, cdn)
    listing = ImageListingService(
        data_source=DataSource.MOCK_HOST,
        backend_client=FakeBackendClient(),
        mock_host_client=mock_host,
        static_base_url="http://localhost:5000",
    )

    asyncio.run(uploads.upload(make_file("sunset.png"), ADMIN))
    page = asyncio.run(listing.list())

    matches = [image for image in page.images if image.display_name == "sunset.png"]
    assert len(matches) == 1
    assert isinstance(matches[0].source, LinkedSource)
    assert matches[0].source.url.startswith("https://")
