"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from gallery_client.api.auth import router as auth_router
from gallery_client.api.images import router as images_router
from gallery_client.app_logging import configure_logging
from gallery_client.containers import AppContainer
from gallery_client.errors import (
    AuthError,
    ConfigurationError,
    DuplicateImageError,
    RequestError,
    UpstreamError,
    ValidationError,
)

_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (ValidationError, 422),
    (DuplicateImageError, status.HTTP_409_CONFLICT),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (RequestError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            outcome, _ = await app.state.container.auth_service.verify_session()
            logger.info("Startup session check: %s", outcome.value)
        except Exception:
            logger.exception("Failed to verify cached session")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(auth_router)
    app.include_router(images_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    async def gallery_error_handler(request: Request, exc: Exception) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    for error_type, _status in _ERROR_STATUS:
        app.add_exception_handler(error_type, gallery_error_handler)

    return app


def _status_for(exc: Exception) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR
