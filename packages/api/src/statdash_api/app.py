"""FastAPI application factory."""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statdash_shared import __version__
from statdash_shared.config import settings
from statdash_pipeline.utils.logging import configure_logging

from statdash_api.middleware.logging import LoggingMiddleware
from statdash_api.routers.health import router as health_router
from statdash_api.routers.v1 import v1_router

logger = structlog.get_logger()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="statdash API",
        description="BPS indicator sync and dashboard data",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(health_router)
    app.include_router(v1_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()
