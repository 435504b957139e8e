from __future__ import annotations

from datetime import datetime
from typing import Protocol

from pong_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: str) -> Message | None: ...

    async def list_between(self, user_a: str, user_b: str) -> list[Message]:
        """Both directions, newest first."""
        ...

    async def list_for_user(self, user_id: str) -> list[Message]:
        """Every message sent or received by ``user_id``, newest first."""
        ...


class MessageWriter(Protocol):
    async def add(self, message: Message) -> Message: ...

    async def mark_read(self, message_id: str, ts: datetime) -> None:
        """Set read_at unless it is already set."""
        ...

    async def delete(self, message_id: str) -> bool: ...

    async def delete_between(self, user_a: str, user_b: str) -> int: ...
