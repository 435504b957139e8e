"""Process-local presence registry.

Maps live connection ids to the user they identified as. Not shared across
processes. All methods are synchronous, so on a single event loop no two
callers can interleave mid-mutation.
"""
from __future__ import annotations

import logging

from pong_chat.domain.entities.presence import PresenceEntry
from pong_chat.domain.value_objects.ids import ConnectionId, UserId

logger = logging.getLogger(__name__)


class PresenceRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, PresenceEntry] = {}

    def register(self, connection_id: str, user_id: str, display_name: str) -> None:
        if not connection_id or not user_id:
            logger.warning(
                "Ignoring presence registration with empty id (connection=%r, user=%r)",
                connection_id, user_id,
            )
            return
        self._entries[connection_id] = PresenceEntry(
            connection_id=ConnectionId(connection_id),
            user_id=UserId(str(user_id)),
            display_name=display_name or str(user_id),
        )

    def unregister(self, connection_id: str) -> PresenceEntry | None:
        return self._entries.pop(connection_id, None)

    def get(self, connection_id: str) -> PresenceEntry | None:
        return self._entries.get(connection_id)

    def list_online_user_ids(self) -> set[str]:
        return {entry.user_id for entry in self._entries.values()}

    def is_online(self, user_id: str) -> bool:
        return any(entry.user_id == user_id for entry in self._entries.values())

    def connections_for(self, user_id: str) -> list[str]:
        return [cid for cid, entry in self._entries.items() if entry.user_id == user_id]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
