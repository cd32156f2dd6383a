"""Entry point for the taskshare FastAPI application."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import api_router, health_router, realtime_router
from .core.config import get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db import close_document_store, init_document_store
from .errors import register_exception_handlers
from .realtime import broker

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application.

    REST routes live under the configured prefix; the health check and the
    notification websocket are served from the root.
    """

    settings = get_settings()
    configure_logging(settings)
    prefix = settings.router_prefix

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Task sharing API with notifications, realtime push and analytics.",
        openapi_url=f"{prefix}/openapi.json",
    )
    application.state.settings = settings

    # Added last so it wraps CORS and sees websocket handshakes too.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    application.add_middleware(CorrelationIdMiddleware)

    application.include_router(api_router, prefix=prefix)
    application.include_router(health_router)
    application.include_router(realtime_router)
    register_exception_handlers(application)

    @application.on_event("startup")
    async def _open_document_store() -> None:
        await init_document_store()
        logger.info("Taskshare API started", extra={"environment": settings.environment, "prefix": prefix})

    @application.on_event("shutdown")
    async def _close_document_store() -> None:
        await broker.reset()
        await close_document_store()

    return application


def run() -> None:
    """Console entry point for ``taskshare-app``."""

    settings = get_settings()
    uvicorn.run(
        "taskshare.app.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )
