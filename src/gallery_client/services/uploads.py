"""Validation and upload of image files."""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import PurePath

from gallery_client.adapters.backend_client import BackendClient
from gallery_client.adapters.cdn_client import CdnClient
from gallery_client.adapters.mock_host_client import MockHostClient
from gallery_client.config import DataSource
from gallery_client.domain.images import ImageRecord, UploadFile, UploadSummary
from gallery_client.domain.users import UserRecord
from gallery_client.errors import (
    ConfigurationError,
    DuplicateImageError,
    RequestError,
    UpstreamError,
    ValidationError,
)
from gallery_client.services.encoding import guess_content_type, sha256_hex, to_data_url
from gallery_client.services.payloads import (
    CREATED_IMAGE_PATHS,
    extract_image_list,
    first_present,
    normalize_backend_image,
    normalize_mock_image,
)

_logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "png", "gif", "webp", "bmp", "dds"}
)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def validate_file(
    file: UploadFile,
    allowed_extensions: frozenset[str] = ALLOWED_EXTENSIONS,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> None:
    """Reject files with a disallowed extension or an oversized payload."""
    if not file.filename.strip():
        raise ValidationError("Please choose an image file.", file.filename)
    _, dot, suffix = file.filename.rpartition(".")
    extension = suffix.lower() if dot else ""
    if extension not in allowed_extensions:
        accepted = ", ".join(f".{ext}" for ext in sorted(allowed_extensions))
        raise ValidationError(
            f"Unsupported file format. Accepted formats: {accepted}", file.filename
        )
    if file.size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationError(
            f"File is too large. Maximum size is {limit_mb}MB", file.filename
        )


def uploader_descriptor(user: UserRecord | None) -> dict[str, object] | None:
    """Describe the uploading user for the stored metadata."""
    if user is None:
        return None
    return {"_id": user.id, "username": user.username, "email": user.email}


@dataclass
class UploadService:
    """Uploads images to the CDN and mock host, or to the backend."""

    data_source: DataSource
    backend_client: BackendClient
    mock_host_client: MockHostClient | None
    cdn_client: CdnClient | None
    static_base_url: str
    dedupe: bool = False
    max_bytes: int = MAX_UPLOAD_BYTES
    allowed_extensions: frozenset[str] = ALLOWED_EXTENSIONS

    async def upload(
        self,
        file: UploadFile,
        uploader: UserRecord | None = None,
        display_name: str | None = None,
    ) -> ImageRecord:
        """Validate then upload a single file."""
        validate_file(file, self.allowed_extensions, self.max_bytes)
        typed = self._with_content_type(file)
        if self.data_source is DataSource.MOCK_HOST:
            return await self._upload_via_cdn(typed, uploader, display_name)
        return await self._upload_to_backend(typed, uploader)

    async def upload_many(
        self, files: list[UploadFile], uploader: UserRecord | None = None
    ) -> UploadSummary:
        """Upload files concurrently and count successes and failures."""
        results = await asyncio.gather(
            *(
                self.upload(file, uploader, display_name=_stem_name(file.filename))
                for file in files
            ),
            return_exceptions=True,
        )
        summary = UploadSummary()
        for file, result in zip(files, results, strict=True):
            if isinstance(result, ImageRecord):
                summary.records.append(result)
            elif isinstance(result, Exception):
                _logger.warning("Upload of %s failed: %s", file.filename, result)
                summary.errors.append((file.filename, str(result)))
            else:
                raise result
        _logger.info(
            "Uploaded %s of %s files (%s failed)",
            summary.succeeded,
            len(files),
            summary.failed,
        )
        return summary

    async def upload_bulk(
        self, files: list[UploadFile], uploader: UserRecord | None = None
    ) -> list[ImageRecord]:
        """Send every file to the backend's bulk endpoint in one request."""
        if self.data_source is not DataSource.BACKEND:
            raise ConfigurationError("Bulk upload requires the backend data source")
        for file in files:
            validate_file(file, self.allowed_extensions, self.max_bytes)
        typed = [self._with_content_type(file) for file in files]
        try:
            response = await self.backend_client.create_images_bulk(
                typed, uploader_descriptor(uploader)
            )
        except RequestError as exc:
            raise _enrich(exc, f"Bulk upload of {len(files)} files failed") from exc
        return [
            record
            for record in (
                normalize_backend_image(item, self.static_base_url)
                for item in extract_image_list(response)
            )
            if record is not None
        ]

    async def _upload_via_cdn(
        self,
        file: UploadFile,
        uploader: UserRecord | None,
        display_name: str | None,
    ) -> ImageRecord:
        mock_host = self._mock_host()
        cdn = self._cdn()
        name = display_name or file.filename
        digest = sha256_hex(file.content)
        if self.dedupe:
            await self._ensure_unique(mock_host, digest, name)

        url = await cdn.upload(to_data_url(file.content, file.content_type))

        now = datetime.now(tz=UTC).isoformat()
        payload: dict[str, object] = {
            "name": name,
            "img": url,
            "hash": digest,
            "createdAt": now,
            "updatedAt": now,
        }
        descriptor = uploader_descriptor(uploader)
        if descriptor is not None:
            payload["uploadedBy"] = descriptor
        try:
            created = await mock_host.create_image(payload)
        except UpstreamError:
            # The CDN copy is left in place.
            _logger.error("Metadata save failed; CDN file %s has no record", url)
            raise
        record = normalize_mock_image({**payload, **created})
        if record is None:
            raise UpstreamError("mock host", "created row could not be read back")
        return record

    async def _upload_to_backend(
        self, file: UploadFile, uploader: UserRecord | None
    ) -> ImageRecord:
        try:
            response = await self.backend_client.create_image(
                file, uploader_descriptor(uploader)
            )
        except RequestError as exc:
            raise _enrich(exc, f"Upload of {file.filename} failed") from exc
        item = first_present(response, CREATED_IMAGE_PATHS)
        if not isinstance(item, dict):
            item = response if isinstance(response, dict) else {}
        record = normalize_backend_image(item, self.static_base_url)
        if record is None:
            raise RequestError("Backend did not return an image record")
        return record

    async def _ensure_unique(
        self, mock_host: MockHostClient, digest: str, name: str
    ) -> None:
        """Best-effort duplicate check; lookup failures skip the check."""
        try:
            existing = await mock_host.list_images()
        except UpstreamError as exc:
            _logger.warning("Skipping duplicate check: %s", exc)
            return
        if not isinstance(existing, list):
            return
        target = name.strip().lower()
        for item in existing:
            if not isinstance(item, dict):
                continue
            if item.get("hash") == digest:
                raise DuplicateImageError("An image with the same content already exists.")
            if target and str(item.get("name") or "").strip().lower() == target:
                raise DuplicateImageError("An image with this name already exists.")

    def _with_content_type(self, file: UploadFile) -> UploadFile:
        if file.content_type:
            return file
        return replace(
            file, content_type=guess_content_type(file.filename, file.content)
        )

    def _mock_host(self) -> MockHostClient:
        if self.mock_host_client is None:
            raise ConfigurationError("mockapi_url is not configured")
        return self.mock_host_client

    def _cdn(self) -> CdnClient:
        if self.cdn_client is None:
            raise ConfigurationError(
                "cloudinary_cloud_name and cloudinary_upload_preset are required"
            )
        return self.cdn_client


def _stem_name(filename: str) -> str:
    stem = PurePath(filename).stem
    return stem or f"image_{int(datetime.now(tz=UTC).timestamp() * 1000)}"


def _enrich(exc: RequestError, context: str) -> RequestError:
    return type(exc)(
        f"{context}: {exc.message}", exc.status, html_error_page=exc.html_error_page
    )
