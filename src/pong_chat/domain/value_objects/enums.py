from __future__ import annotations

from enum import StrEnum


class ConnectionState(StrEnum):
    CONNECTED = "connected"
    IDENTIFIED = "identified"
    CLOSED = "closed"


class FriendshipStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"
