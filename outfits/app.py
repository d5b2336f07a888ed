"""
FastAPI application entry point for the outfits backend.

Run with ``uvicorn outfits.app:create_app --factory``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from outfits.config import Settings, get_settings
from outfits.db import Database
from outfits.dependencies import (
    build_cleanup_queue,
    build_database,
    build_storage_client,
)
from outfits.errors import OutfitsError
from outfits.queue import CleanupQueue
from outfits.routes import router
from outfits.storage import StorageClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    storage: Optional[StorageClient] = None,
    cleanup_queue: Optional[CleanupQueue] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    owns_database = database is None
    database = database or build_database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_database:
            database.dispose()
            logger.info("Database engine disposed")

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage or build_storage_client(settings)
    app.state.cleanup_queue = cleanup_queue or build_cleanup_queue(settings)

    @app.exception_handler(OutfitsError)
    async def outfits_error_handler(request: Request, exc: OutfitsError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.as_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Something went wrong", "code": "INTERNAL_SERVER_ERROR"},
        )

    app.include_router(router, prefix=settings.api_prefix)
    return app
