# src/quorum/main.py
"""Main entry point for the Quorum application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from quorum.api.v1 import (
    answers_router,
    attachments_router,
    collections_router,
    posts_router,
    stats_router,
    tags_router,
)
from quorum.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvariantViolationError,
    QuorumError,
    ResourceNotFoundError,
)
from quorum.core.logging import configure_logging
from quorum.core.settings import settings
from quorum.services.stats import StatsWorker
from quorum.services.transport import get_notification_transport

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Quorum API",
    description="Questions, answers and articles about catalog entities",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(answers_router, prefix="/api/v1")
app.include_router(collections_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")
app.include_router(attachments_router, prefix="/api/v1")
app.include_router(stats_router, prefix="/api/v1")

_ERROR_STATUS: dict[type[QuorumError], int] = {
    ResourceNotFoundError: 404,
    ForbiddenError: 403,
    InvariantViolationError: 409,
    InvalidInputError: 400,
}


@app.exception_handler(QuorumError)
async def quorum_exception_handler(request: Request, exc: QuorumError) -> JSONResponse:
    """Map store and policy errors to HTTP responses."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code == 500:
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.stats_enabled:
        worker = StatsWorker()
        await worker.start()
        app.state.stats_worker = worker
    else:
        app.state.stats_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: StatsWorker | None = getattr(app.state, "stats_worker", None)
    if worker:
        await worker.stop()
    transport = get_notification_transport()
    if transport is not None:
        await transport.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Quorum API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("quorum.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
