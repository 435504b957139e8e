"""Direct message store: append-only messages with a single read marker."""
from __future__ import annotations

import logging
import uuid

from pong_chat.application.exceptions import ValidationError
from pong_chat.application.ports.clock import Clock, SystemClock
from pong_chat.application.uow import UnitOfWork
from pong_chat.domain.entities.conversation import Conversation, conversation_key
from pong_chat.domain.entities.message import Message
from pong_chat.domain.value_objects.ids import MessageId, UserId

logger = logging.getLogger(__name__)

_system_clock = SystemClock()


def _require(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value)


async def send_message(
    sender_id: str,
    receiver_id: str,
    content: str,
    uow: UnitOfWork,
    clock: Clock = _system_clock,
) -> Message:
    """Persist a new message and return the stored record."""
    sender_id = _require(sender_id, "senderId")
    receiver_id = _require(receiver_id, "receiverId")
    content = _require(content, "content")

    msg = Message(
        id=MessageId(str(uuid.uuid4())),
        sender_id=UserId(sender_id),
        receiver_id=UserId(receiver_id),
        content=content,
        sent_at=clock.now(),
    )
    msg = await uow.messages_w.add(msg)
    await uow.commit()
    logger.debug("Message %s stored (%s -> %s)", msg.id, sender_id, receiver_id)
    return msg


async def get_message(message_id: str, uow: UnitOfWork) -> Message | None:
    return await uow.messages.get_by_id(message_id)


async def get_conversation(user_a: str, user_b: str, uow: UnitOfWork) -> list[Message]:
    """All messages between two users, either direction, newest first."""
    return await uow.messages.list_between(user_a, user_b)


async def get_user_conversations(user_id: str, uow: UnitOfWork) -> list[Conversation]:
    """Group every message of ``user_id`` by counterpart.

    Groups keep the newest-first order of the underlying query, and the
    groups themselves are ordered by their most recent message.
    """
    messages = await uow.messages.list_for_user(user_id)

    # Keyed by counterpart: joined pair keys collide when ids contain "_".
    grouped: dict[UserId, list[Message]] = {}
    for msg in messages:
        grouped.setdefault(msg.counterpart_of(user_id), []).append(msg)

    return [
        Conversation(
            key=conversation_key(user_id, other),
            user_id=UserId(user_id),
            counterpart_id=other,
            messages=tuple(msgs),
        )
        for other, msgs in grouped.items()
    ]


async def mark_as_read(
    message_id: str,
    uow: UnitOfWork,
    clock: Clock = _system_clock,
) -> Message | None:
    """Set the read marker once. Unknown ids give ``None``; re-reads are no-ops."""
    existing = await uow.messages.get_by_id(message_id)
    if existing is None:
        return None
    if existing.is_read:
        return existing

    await uow.messages_w.mark_read(message_id, clock.now())
    await uow.commit()
    return await uow.messages.get_by_id(message_id)


async def delete_message(message_id: str, uow: UnitOfWork) -> bool:
    removed = await uow.messages_w.delete(message_id)
    if removed:
        await uow.commit()
    return removed


async def clear_conversation(user_a: str, user_b: str, uow: UnitOfWork) -> int:
    count = await uow.messages_w.delete_between(user_a, user_b)
    await uow.commit()
    logger.info("Cleared %d messages between %s and %s", count, user_a, user_b)
    return count
