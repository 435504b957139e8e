from __future__ import annotations

from pong_chat.application.ports.clock import as_utc
from pong_chat.domain.entities.message import Message
from pong_chat.domain.value_objects.ids import MessageId, UserId
from pong_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=MessageId(model.id),
        sender_id=UserId(model.sender_id),
        receiver_id=UserId(model.receiver_id),
        content=model.content,
        sent_at=as_utc(model.sent_at),
        read_at=as_utc(model.read_at),
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        sender_id=entity.sender_id,
        receiver_id=entity.receiver_id,
        content=entity.content,
        sent_at=entity.sent_at,
        read_at=entity.read_at,
    )
