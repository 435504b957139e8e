from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pong_chat.domain.value_objects.ids import MessageId, UserId


@dataclass(frozen=True, slots=True)
class Message:
    id: MessageId
    sender_id: UserId
    receiver_id: UserId
    content: str
    sent_at: datetime
    read_at: datetime | None = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def counterpart_of(self, user_id: str) -> UserId:
        """The other participant, seen from ``user_id``."""
        return self.receiver_id if self.sender_id == user_id else self.sender_id
