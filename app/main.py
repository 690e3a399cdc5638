"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_exception_handlers
from app.api.routers import get_api_router
from app.core.config import AppSettings, get_settings
from app.core.database import engine
from app.core.logging import configure_logging
from app.ingestion.field_mapping import get_field_mapper
from app.models import Base

logger = logging.getLogger("app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: D401
    """Create missing tables and freeze the producer mappings before serving."""

    settings = get_settings()
    if settings.environment in ("local", "test"):
        Base.metadata.create_all(bind=engine)
    mapper = get_field_mapper()
    logger.info("field_mappings_loaded", extra={"producers": list(mapper.producers())})

    yield


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Application factory."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Omen Event Ingestion Core",
        version="1.0.0",
        lifespan=lifespan,
    )

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(get_api_router())
    return app


app = create_app()
