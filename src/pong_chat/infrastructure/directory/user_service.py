"""HTTP clients for the user service (directory lookups and friendship status)."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from pong_chat.application.dto.directory import DirectoryUser
from pong_chat.application.exceptions import ExternalLookupError
from pong_chat.domain.value_objects.enums import FriendshipStatus

logger = logging.getLogger(__name__)


class UserServiceClient:
    """Implements application.ports.directory.UserDirectory and FriendshipChecker."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, authorization: str | None) -> httpx.Response:
        headers = {"Authorization": authorization} if authorization else {}
        try:
            return await self._client.get(path, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("User service call %s failed: %r", path, exc)
            raise ExternalLookupError("User service unavailable") from exc

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            body = resp.json()
        except ValueError as exc:
            raise ExternalLookupError("Malformed user service response") from exc
        if not isinstance(body, dict):
            raise ExternalLookupError("Malformed user service response")
        return body

    async def lookup(
        self, user_id: str, *, authorization: str | None = None,
    ) -> DirectoryUser | None:
        resp = await self._get(f"/api/users/{user_id}", authorization)
        if resp.status_code == httpx.codes.NOT_FOUND:
            return None
        if resp.is_error:
            raise ExternalLookupError(f"User lookup failed with status {resp.status_code}")

        user = self._json(resp).get("user")
        if not isinstance(user, dict) or user.get("id") is None:
            return None
        uid = str(user["id"])
        name = user.get("fullName") or user.get("username") or uid
        return DirectoryUser(id=uid, display_name=str(name))

    async def are_friends(
        self, user_id: str, other_id: str, *, authorization: str | None = None,
    ) -> bool:
        resp = await self._get(f"/api/friendship/{user_id}/{other_id}/status", authorization)
        if resp.is_error:
            raise ExternalLookupError(f"Friendship check failed with status {resp.status_code}")
        return self._json(resp).get("status") == FriendshipStatus.ACCEPTED
