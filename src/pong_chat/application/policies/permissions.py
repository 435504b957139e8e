from __future__ import annotations

import logging

from pong_chat.application.dto.principal import Principal
from pong_chat.application.exceptions import (
    ExternalLookupError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from pong_chat.application.ports.directory import FriendshipChecker
from pong_chat.domain.entities.message import Message

logger = logging.getLogger(__name__)


def assert_self(principal: Principal, user_id: str) -> None:
    """Raise unless the caller is acting on their own resources."""
    if not principal.is_user(user_id):
        raise ForbiddenError("Not allowed to access another user's messages")


async def assert_can_send(
    principal: Principal,
    sender_id: str,
    receiver_id: str,
    friendships: FriendshipChecker,
    *,
    authorization: str | None = None,
) -> None:
    if not sender_id or not receiver_id:
        raise ValidationError("Missing sender or receiver")
    assert_self(principal, sender_id)

    try:
        accepted = await friendships.are_friends(
            sender_id, receiver_id, authorization=authorization,
        )
    except ExternalLookupError as exc:
        logger.warning("Friendship check %s -> %s failed: %s", sender_id, receiver_id, exc.detail)
        raise ForbiddenError("Cannot send message: friendship check failed") from exc

    if not accepted:
        raise ForbiddenError("You cannot send messages to this user")


def assert_can_delete(principal: Principal, message: Message | None) -> Message:
    if message is None:
        raise NotFoundError("Message not found")
    if not principal.is_user(message.sender_id):
        raise ForbiddenError("Not allowed to delete this message")
    return message


def assert_can_mark_read(principal: Principal, message: Message | None) -> Message:
    if message is None:
        raise NotFoundError("Message not found")
    if not principal.is_user(message.receiver_id):
        raise ForbiddenError("Only the receiver can mark a message as read")
    return message


def assert_can_clear(principal: Principal, user_id: str, friend_id: str) -> None:
    assert_self(principal, user_id)
    if not friend_id or friend_id == user_id:
        raise ValidationError("Invalid conversation participants")
