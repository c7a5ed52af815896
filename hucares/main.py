"""HuCares FastAPI application."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from hucares.api import auth, checkins, groups, health
from hucares.core.config import settings
from hucares.core.errors import register_exception_handlers

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

register_exception_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(groups.router)
app.include_router(checkins.router)
