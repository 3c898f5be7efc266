"""
KNote Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn knote.main:app).

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, never fatal)
    3. Object store handshake: blocks startup until connected, or until the
       retry policy gives up (degraded mode, attachments disabled)

    Shutdown:
    1. Cancel a still-running handshake
    2. Dispose database engine (close all connections)
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from knote import __version__
from knote.config import settings
from knote.database import dispose_engine
from knote.exceptions import (
    DatabaseError,
    KNoteError,
    NotFoundError,
    ObjectStoreError,
    StorageUnavailableError,
    UploadFailedError,
    ValidationError,
)
from knote.middleware.logging import RequestLoggingMiddleware
from knote.middleware.request_id import RequestIDMiddleware, request_id_var
from knote.routes import health, images, notes
from knote.services.storage_bootstrap import storage_bootstrapper

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] knote.services.note_store: Note 3 created
    Output goes to stdout, which the container runtime collects.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every request at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Run the object store handshake before serving, clean up on shutdown.

    The handshake is synchronous (boto3) and may sleep between attempts, so it
    runs in a worker thread; startup still waits for it to finish.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("KNote Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info(
        "Connecting to object store at %s (bucket=%s, reconnect=%s)",
        settings.minio_endpoint_url,
        settings.minio_bucket,
        settings.minio_reconnect_enabled,
    )
    try:
        state = await asyncio.to_thread(storage_bootstrapper.ensure_ready)
    except asyncio.CancelledError:
        storage_bootstrapper.cancel()
        raise
    logger.info("Object store state: %s", state.value)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("KNote Backend shutting down...")
    storage_bootstrapper.cancel()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError          → 400 Bad Request (context returned as details)
        NotFoundError            → 404 Not Found
        StorageUnavailableError  → 503 Service Unavailable
        ObjectStoreError         → 502 Bad Gateway (UploadFailedError included)
        DatabaseError            → 500 Internal Server Error
        KNoteError (base)        → 500 Internal Server Error
        Exception (fallback)     → 500 Internal Server Error

    Apart from ValidationError, context dicts are logged server-side and
    never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StorageUnavailableError)
    async def handle_storage_unavailable(request: Request, exc: StorageUnavailableError):
        rid = request_id_var.get("")
        logger.warning("[%s] Storage unavailable: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=503,
            content={
                "error": "storage_unavailable",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(ObjectStoreError)
    async def handle_object_store_error(request: Request, exc: ObjectStoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Object store error: %s | Context: %s", rid, exc.message, exc.context)
        error = "upload_failed" if isinstance(exc, UploadFailedError) else "storage_error"
        return JSONResponse(
            status_code=502,
            content={
                "error": error,
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(KNoteError)
    async def handle_knote_error(request: Request, exc: KNoteError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="KNote API",
        description=(
            "Minimal note-taking service. Notes are written in CommonMark, "
            "rendered to HTML and listed newest first; images are stored in "
            "an S3-compatible object store and embedded by reference."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → route
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(images.router)
    app.include_router(health.router)

    return app


app = create_app()
