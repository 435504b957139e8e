from __future__ import annotations

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pong_chat.application.exceptions import PersistenceError
from pong_chat.domain.entities.notification import Notification
from pong_chat.infrastructure.db.mappers import notification as mapper
from pong_chat.infrastructure.db.models.notification import (
    NotificationModel,
    NotificationReceiverModel,
)


class NotificationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_receiver(self, receiver_id: str) -> list[Notification]:
        stmt = (
            select(NotificationModel)
            .join(
                NotificationReceiverModel,
                NotificationReceiverModel.notification_id == NotificationModel.id,
            )
            .where(NotificationReceiverModel.receiver_id == receiver_id)
            .order_by(NotificationModel.sent_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def is_receiver(self, notification_id: str, receiver_id: str) -> bool:
        stmt = select(
            exists().where(
                NotificationReceiverModel.notification_id == notification_id,
                NotificationReceiverModel.receiver_id == receiver_id,
            )
        )
        result = await self._session.execute(stmt)
        return bool(result.scalar())


class NotificationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, notification: Notification, receiver_ids: list[str]) -> Notification:
        model = mapper.entity_to_model(notification, receiver_ids)
        self._session.add(model)
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to save notification") from exc
        return mapper.model_to_entity(model)

    async def remove_receiver(self, notification_id: str, receiver_id: str) -> int:
        result = await self._session.execute(
            delete(NotificationReceiverModel).where(
                NotificationReceiverModel.notification_id == notification_id,
                NotificationReceiverModel.receiver_id == receiver_id,
            )
        )
        return result.rowcount

    async def clear_receiver(self, receiver_id: str) -> int:
        result = await self._session.execute(
            delete(NotificationReceiverModel).where(
                NotificationReceiverModel.receiver_id == receiver_id,
            )
        )
        return result.rowcount

    async def purge_orphans(self) -> int:
        has_receiver = exists().where(
            NotificationReceiverModel.notification_id == NotificationModel.id,
        )
        result = await self._session.execute(
            delete(NotificationModel)
            .where(~has_receiver)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
