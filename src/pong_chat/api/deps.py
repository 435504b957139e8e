"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pong_chat.application.dto.principal import Principal
from pong_chat.application.ports.auth import TokenVerifier
from pong_chat.application.ports.directory import FriendshipChecker
from pong_chat.config import settings
from pong_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from pong_chat.infrastructure.db.session import AsyncSessionLocal
from pong_chat.infrastructure.db.uow import SqlAlchemyUoW
from pong_chat.infrastructure.ws.relay import RelayHandler

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]

_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization token required",
        )
    verifier = get_verifier()
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]

AuthorizationHeader = Annotated[str | None, Header(alias="Authorization")]


def get_friendship_checker(request: Request) -> FriendshipChecker:
    return request.app.state.user_service


FriendshipDep = Annotated[FriendshipChecker, Depends(get_friendship_checker)]


def get_relay(request: Request) -> RelayHandler:
    return request.app.state.relay


RelayDep = Annotated[RelayHandler, Depends(get_relay)]
