from __future__ import annotations

from typing import Protocol

from pong_chat.application.dto.directory import DirectoryUser


class UserDirectory(Protocol):
    async def lookup(
        self, user_id: str, *, authorization: str | None = None,
    ) -> DirectoryUser | None:
        """Return the user, ``None`` when unknown. Raise ExternalLookupError on failure."""
        ...


class FriendshipChecker(Protocol):
    async def are_friends(
        self, user_id: str, other_id: str, *, authorization: str | None = None,
    ) -> bool:
        """True when the friendship status is ``accepted``."""
        ...
