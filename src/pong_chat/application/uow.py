from __future__ import annotations

from typing import Protocol

from pong_chat.application.repositories.message import MessageReader, MessageWriter
from pong_chat.application.repositories.notification import (
    NotificationReader,
    NotificationWriter,
)


class UnitOfWork(Protocol):
    messages: MessageReader
    messages_w: MessageWriter
    notifications: NotificationReader
    notifications_w: NotificationWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
