from __future__ import annotations

import logging
import uuid

from pong_chat.application.exceptions import NotFoundError, ValidationError
from pong_chat.application.ports.clock import Clock, SystemClock
from pong_chat.application.uow import UnitOfWork
from pong_chat.domain.entities.notification import Notification
from pong_chat.domain.value_objects.ids import NotificationId, UserId

logger = logging.getLogger(__name__)

_system_clock = SystemClock()


async def send_notification(
    sender_id: str,
    receiver_ids: list[str],
    content: str,
    type_: str,
    uow: UnitOfWork,
    clock: Clock = _system_clock,
) -> tuple[Notification, list[str]]:
    """Store one notification for several receivers.

    Returns the notification and the de-duplicated receiver list.
    """
    receivers = list(dict.fromkeys(str(r) for r in receiver_ids if str(r).strip()))
    if not content or not content.strip() or not type_ or not receivers:
        raise ValidationError("Incomplete or invalid body")

    notification = Notification(
        id=NotificationId(str(uuid.uuid4())),
        sender_id=UserId(sender_id),
        content=content,
        type=type_,
        sent_at=clock.now(),
    )
    notification = await uow.notifications_w.add(notification, receivers)
    await uow.commit()
    logger.debug("Notification %s sent to %d receivers", notification.id, len(receivers))
    return notification, receivers


async def list_notifications(user_id: str, uow: UnitOfWork) -> list[Notification]:
    return await uow.notifications.list_for_receiver(user_id)


async def clear_notifications(user_id: str, uow: UnitOfWork) -> int:
    removed = await uow.notifications_w.clear_receiver(user_id)
    await uow.notifications_w.purge_orphans()
    await uow.commit()
    return removed


async def delete_notification(notification_id: str, user_id: str, uow: UnitOfWork) -> None:
    if not await uow.notifications.is_receiver(notification_id, user_id):
        raise NotFoundError("Notification not found")
    await uow.notifications_w.remove_receiver(notification_id, user_id)
    await uow.notifications_w.purge_orphans()
    await uow.commit()
