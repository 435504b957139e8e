from __future__ import annotations

from dataclasses import dataclass

from pong_chat.domain.value_objects.ids import ConnectionId, UserId


@dataclass(frozen=True, slots=True)
class PresenceEntry:
    connection_id: ConnectionId
    user_id: UserId
    display_name: str
