"""healthsync API — FastAPI application entry point.

Run locally:
    uvicorn healthsync.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from healthsync.config import Settings, get_settings
from healthsync.dependencies import Services, build_services
from healthsync.routers import health, records, session, sync, workouts

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("healthsync")


# ---------- App factory ----------

def create_app(
    settings: Settings | None = None, services: Services | None = None
) -> FastAPI:
    """Build the app.  Pass ``services`` to run against injected collaborators."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup / shutdown hooks."""
        logger.info(
            "Starting healthsync API v%s [%s]",
            settings.app_version,
            settings.environment,
        )
        app.state.services = services or build_services(settings)
        yield
        await app.state.services.aclose()
        logger.info("healthsync API shut down")

    app = FastAPI(
        title="healthsync API",
        description=(
            "Reads daily health metrics from the local store and syncs them "
            "to the remote dashboard service."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Health check (outside v1 prefix — always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(records.router, prefix=v1_prefix)
    app.include_router(sync.router, prefix=v1_prefix)
    app.include_router(session.router, prefix=v1_prefix)
    app.include_router(workouts.router, prefix=v1_prefix)

    return app


app = create_app()
