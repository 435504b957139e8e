from __future__ import annotations

import jwt

from pong_chat.application.dto.principal import Principal


class HS256Verifier:
    """Verify JWTs signed by the auth service with the shared secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        # The auth service signs ``{"id": ...}``; accept the standard claim too.
        subject = payload.get("id", payload.get("sub"))
        if subject is None or str(subject) == "":
            raise jwt.InvalidTokenError("Token carries no user id")
        return Principal(user_id=str(subject))
