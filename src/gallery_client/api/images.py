"""Gallery image endpoints; writes require an admin session."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from gallery_client.api.models import image_payload, page_payload, summary_payload
from gallery_client.domain.images import UploadFile as GalleryFile
from gallery_client.domain.users import UserRecord  # noqa: TC001

if TYPE_CHECKING:
    from gallery_client.containers import AppContainer

router = APIRouter(prefix="/images", tags=["images"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_admin(request: Request) -> UserRecord:
    """Ensure the cached session belongs to an admin."""
    user = _container(request).auth_service.current_user
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return user


@router.get("")
async def list_images(
    request: Request, page: int = 1, limit: int = 20, q: str | None = None
) -> dict[str, object]:
    """Return a page of images, optionally filtered by name."""
    service = _container(request).image_service
    if q:
        return page_payload(await service.search(q, page, limit))
    return page_payload(await service.list(page, limit))


@router.post("")
async def upload_images(
    request: Request,
    files: list[UploadFile] = File(...),
    user: UserRecord = Depends(require_admin),
) -> dict[str, object]:
    """Upload one image, or several concurrently."""
    service = _container(request).upload_service
    selected = [
        GalleryFile(
            filename=item.filename or "",
            content=await item.read(),
            content_type=item.content_type,
        )
        for item in files
    ]
    if len(selected) == 1:
        record = await service.upload(selected[0], user)
        return {"image": image_payload(record)}
    return summary_payload(await service.upload_many(selected, user))


@router.delete("/{image_id}", dependencies=[Depends(require_admin)])
async def delete_image(image_id: str, request: Request) -> dict[str, str]:
    """Delete an image by id."""
    await _container(request).image_service.delete(image_id)
    return {"status": "deleted"}
