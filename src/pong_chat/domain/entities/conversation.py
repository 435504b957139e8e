from __future__ import annotations

from dataclasses import dataclass

from pong_chat.domain.entities.message import Message
from pong_chat.domain.value_objects.ids import UserId


def conversation_key(user_a: str, user_b: str) -> str:
    """Canonical key of the unordered pair {user_a, user_b}."""
    return "_".join(sorted((user_a, user_b)))


@dataclass(frozen=True, slots=True)
class Conversation:
    """Messages exchanged between two users. Derived, never stored."""

    key: str
    user_id: UserId
    counterpart_id: UserId
    messages: tuple[Message, ...]

    @property
    def last_message(self) -> Message | None:
        return self.messages[0] if self.messages else None

    @property
    def unread_count(self) -> int:
        return sum(
            1 for m in self.messages
            if m.receiver_id == self.user_id and not m.is_read
        )
