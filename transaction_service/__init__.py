"""Application factory and top-level wiring for the product transaction service.

This module brings together configuration, database setup, middleware, the
API router and error handling. Importing it gives you a ready ``app``; the
tables are created and the connection is verified when the app starts.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    ServiceError,
    http_exception_handler,
    service_error_handler,
    unhandled_exception_handler,
)
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware

# Importing the SQLAlchemy models registers them with the metadata.
from .models import transaction as _transaction  # noqa: F401
from .routers import api_transactions as api_transactions_router

logger = logging.getLogger(__name__)


def init_database() -> None:
    """Create missing tables and make sure the database answers."""

    try:
        Base.metadata.create_all(bind=engine)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database connection failure")
        raise
    logger.info("Database connected")


def create_app() -> FastAPI:
    application = FastAPI(title=settings.APP_NAME)

    # ---------- Middleware ----------
    # With no configured origins every caller's origin is echoed back, credentials included.
    if settings.CORS_ORIGINS:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        application.add_middleware(
            CORSMiddleware,
            allow_origin_regex=".*",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    application.add_middleware(RequestIdMiddleware)

    # ---------- Routers ----------
    application.include_router(api_transactions_router.router)

    # ---------- Exception handling ----------
    application.add_exception_handler(ServiceError, service_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    # ---------- DB init ----------
    application.add_event_handler("startup", init_database)
    return application


app = create_app()

__all__ = ["app", "create_app", "init_database"]
