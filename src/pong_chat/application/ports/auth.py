from __future__ import annotations

from typing import Protocol

from pong_chat.application.dto.principal import Principal


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Principal:
        """Decode a bearer token issued by the auth service."""
        ...
