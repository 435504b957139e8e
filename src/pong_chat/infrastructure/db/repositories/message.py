from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pong_chat.application.exceptions import PersistenceError
from pong_chat.domain.entities.message import Message
from pong_chat.infrastructure.db.mappers import message as mapper
from pong_chat.infrastructure.db.models.message import MessageModel


def _between(user_a: str, user_b: str):
    return or_(
        and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
        and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: str) -> Message | None:
        model = await self._session.get(MessageModel, message_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def list_between(self, user_a: str, user_b: str) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(_between(user_a, user_b))
            .order_by(MessageModel.sent_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_user(self, user_id: str) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(
                (MessageModel.sender_id == user_id)
                | (MessageModel.receiver_id == user_id)
            )
            .order_by(MessageModel.sent_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to save message") from exc
        return mapper.model_to_entity(model)

    async def mark_read(self, message_id: str, ts: datetime) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id, MessageModel.read_at.is_(None))
            .values(read_at=ts)
        )
        await self._session.execute(stmt)

    async def delete(self, message_id: str) -> bool:
        result = await self._session.execute(
            delete(MessageModel).where(MessageModel.id == message_id)
        )
        return result.rowcount > 0

    async def delete_between(self, user_a: str, user_b: str) -> int:
        result = await self._session.execute(
            delete(MessageModel).where(_between(user_a, user_b))
        )
        return result.rowcount
