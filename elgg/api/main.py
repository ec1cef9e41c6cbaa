"""FastAPI application factory.

Builds the ``Elgg`` application object on startup and mounts all API
routers.  This module is the authoritative app object; elgg/main.py
re-exports it.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from elgg.api.routes.cron import router as cron_router
from elgg.api.routes.entities import router as entities_router
from elgg.api.routes.health import router as health_router
from elgg.api.routes.install import router as install_router
from elgg.api.routes.notifications import router as notifications_router
from elgg.application import Elgg
from elgg.core.logging import setup_logging
from elgg.core.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if getattr(app.state, "elgg", None) is None:
        app.state.elgg = Elgg(get_settings())
    logger.info("Application started")
    yield


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)
app.state.elgg = None

app.include_router(health_router)
app.include_router(entities_router)
app.include_router(notifications_router)
app.include_router(cron_router)
app.include_router(install_router)
