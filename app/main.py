from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.db import create_schema, engine
from app.logging_config import configure_logging
from app.request_context import RequestIdMiddleware
from app.routes.api import api_router

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "Starting birthday reminder application timezone=%s upcoming_window_days=%s",
        settings.timezone,
        settings.upcoming_window_days,
    )
    if settings.create_schema_on_startup:
        create_schema(engine)
        logger.info("Database schema ensured")
    else:
        logger.info("Schema creation on startup disabled; expecting alembic migrations")
    yield
    logger.info("Shutting down birthday reminder application")


def create_app() -> FastAPI:
    app = FastAPI(title="Birthday Reminder", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.app_host, port=settings.app_port, log_config=None)
