from __future__ import annotations

from pong_chat.application.ports.clock import as_utc
from pong_chat.domain.entities.notification import Notification
from pong_chat.domain.value_objects.ids import NotificationId, UserId
from pong_chat.infrastructure.db.models.notification import (
    NotificationModel,
    NotificationReceiverModel,
)


def model_to_entity(model: NotificationModel) -> Notification:
    return Notification(
        id=NotificationId(model.id),
        sender_id=UserId(model.sender_id),
        content=model.content,
        type=model.type,
        sent_at=as_utc(model.sent_at),
    )


def entity_to_model(entity: Notification, receiver_ids: list[str]) -> NotificationModel:
    return NotificationModel(
        id=entity.id,
        sender_id=entity.sender_id,
        content=entity.content,
        type=entity.type,
        sent_at=entity.sent_at,
        receivers=[
            NotificationReceiverModel(notification_id=entity.id, receiver_id=rid)
            for rid in receiver_ids
        ],
    )
