from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from pong_chat.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    parsed = make_url(url)
    is_sqlite = parsed.get_backend_name() == "sqlite"

    kwargs: dict[str, Any] = {"echo": echo}
    if is_sqlite and parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every session sees its own empty database.
        kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, **kwargs)

    if is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn: Any, _record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
AsyncSessionLocal = build_sessionmaker(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the chat tables if they do not exist yet."""
    from pong_chat.infrastructure.db import models  # noqa: F401
    from pong_chat.infrastructure.db.base import Base

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Chat database initialized")
