"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from longshot import __version__
from longshot.api.errors import register_error_handlers
from longshot.api.routes import router
from longshot.config import Settings, get_settings
from longshot.imaging.codec import PillowCodec
from longshot.pdf import PyMuPdfAssembler
from longshot.pipeline.pool import SlicingPool

logger = logging.getLogger(__name__)


def init_state(app: FastAPI, settings: Settings) -> None:
    """Attach settings and the processing collaborators to ``app.state``."""
    codec = PillowCodec(max_image_pixels=settings.max_image_pixels)
    app.state.settings = settings
    app.state.codec = codec
    app.state.pdf_assembler = PyMuPdfAssembler(codec)
    app.state.slicing_pool = SlicingPool(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting LongShot (max_concurrent=%s, region_workers=%s, max_image_pixels=%s)",
        settings.max_concurrent,
        settings.region_workers,
        settings.max_image_pixels,
    )

    init_state(app, settings)

    logger.info("LongShot ready")
    yield

    logger.info("Shutting down LongShot")
    app.state.slicing_pool.shutdown()
    logger.info("LongShot shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="LongShot",
        description="Slice long screenshots at their black divider lines into one-image-per-page PDFs",
        version=__version__,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    register_error_handlers(application)
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("longshot.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
