"""
netdiscovery - FastAPI Application Entry Point.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from netdiscovery.api.routes import api_router
from netdiscovery.core.config import settings
from netdiscovery.services.discovery import get_discovery_service
from netdiscovery.services.scheduler import get_scheduler_service, setup_scheduled_jobs

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.app_debug else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan management.

    Startup: build the discovery service, start the session reaper.
    Shutdown: stop the scheduler, close every SNMP session.
    """
    logger.info("Starting application...")
    service = get_discovery_service()
    setup_scheduled_jobs(service.registry, settings.session.sweep_interval_seconds)
    scheduler = get_scheduler_service()
    scheduler.start()

    yield

    logger.info("Shutting down application...")
    scheduler.stop()
    await service.shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="SNMP 設備識別、VLAN 與 MAC 探索 API",
        version=VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """攔截所有未處理的 500 錯誤。"""
        logger.error(
            "Unhandled exception on %s %s: %s",
            request.method, request.url.path, exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    prefix = settings.api_prefix
    app.include_router(api_router, prefix=prefix)

    @app.get(f"{prefix}/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        scheduler = get_scheduler_service()
        return {
            "status": "ok",
            "version": VERSION,
            "scheduler_running": scheduler.is_running(),
            "scheduled_jobs": len(scheduler.get_jobs()),
            "snmp_sessions": get_discovery_service().registry.count(),
            "snmp_mock": settings.snmp.mock,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "netdiscovery.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app_debug,
    )
