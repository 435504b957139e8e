from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pong_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from pong_chat.api.v1.routers import health, messages, notifications, ws
from pong_chat.application.exceptions import (
    AppError,
    ExternalLookupError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from pong_chat.config import settings
from pong_chat.infrastructure.db.session import AsyncSessionLocal, init_db
from pong_chat.infrastructure.db.uow import uow_factory
from pong_chat.infrastructure.directory.user_service import UserServiceClient
from pong_chat.infrastructure.ws.manager import ConnectionManager
from pong_chat.infrastructure.ws.presence import PresenceRegistry
from pong_chat.infrastructure.ws.relay import RelayHandler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    await init_db()

    yield

    await app.state.user_service.aclose()
    logger.info("User service client closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pong Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.user_service = UserServiceClient(
        settings.USER_SERVICE_URL,
        timeout=settings.USER_SERVICE_TIMEOUT,
    )
    app.state.relay = RelayHandler(
        ConnectionManager(),
        PresenceRegistry(),
        app.state.user_service,
        uow_factory(AsyncSessionLocal),
        lookup_timeout=settings.USER_SERVICE_TIMEOUT,
        broadcast_on_disconnect=settings.PRESENCE_BROADCAST_ON_DISCONNECT,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(notifications.router)
    app.include_router(ws.router)

    return app


_STATUS_BY_ERROR: dict[type[AppError], int] = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ValidationError: 422,
    ExternalLookupError: 502,
    PersistenceError: 500,
}


def _register_exception_handlers(app: FastAPI) -> None:
    async def _app_error(_req: Request, exc: AppError) -> JSONResponse:
        status_code = _STATUS_BY_ERROR.get(type(exc), 500)
        if status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.detail)
        return JSONResponse(status_code=status_code, content={"detail": exc.detail})

    for error_type in _STATUS_BY_ERROR:
        app.add_exception_handler(error_type, _app_error)
