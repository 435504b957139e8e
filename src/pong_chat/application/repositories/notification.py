from __future__ import annotations

from typing import Protocol

from pong_chat.domain.entities.notification import Notification


class NotificationReader(Protocol):
    async def list_for_receiver(self, receiver_id: str) -> list[Notification]: ...

    async def is_receiver(self, notification_id: str, receiver_id: str) -> bool: ...


class NotificationWriter(Protocol):
    async def add(self, notification: Notification, receiver_ids: list[str]) -> Notification: ...

    async def remove_receiver(self, notification_id: str, receiver_id: str) -> int: ...

    async def clear_receiver(self, receiver_id: str) -> int:
        """Drop every receiver row of ``receiver_id``. Returns rows removed."""
        ...

    async def purge_orphans(self) -> int:
        """Delete notifications that no longer have any receiver."""
        ...
