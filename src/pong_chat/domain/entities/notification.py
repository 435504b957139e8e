from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pong_chat.domain.value_objects.ids import NotificationId, UserId


@dataclass(frozen=True, slots=True)
class Notification:
    id: NotificationId
    sender_id: UserId
    content: str
    type: str
    sent_at: datetime
