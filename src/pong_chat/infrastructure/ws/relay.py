"""Real-time relay: identity resolution, presence and point-to-point delivery.

One ``ConnectionContext`` per socket walks ``connected -> identified ->
closed``. Every inbound frame is handled to completion before the next one
of the same connection is read; a failure is answered on the originating
connection only and never closes it.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Callable

from pong_chat.application.exceptions import (
    ExternalLookupError,
    PersistenceError,
    ValidationError,
)
from pong_chat.application.ports.clock import Clock, SystemClock
from pong_chat.application.ports.directory import UserDirectory
from pong_chat.application.uow import UnitOfWork
from pong_chat.domain.entities.message import Message
from pong_chat.domain.value_objects.enums import ConnectionState
from pong_chat.infrastructure.ws.manager import ConnectionManager, Socket, user_group
from pong_chat.infrastructure.ws.presence import PresenceRegistry
from pong_chat.infrastructure.ws.protocol import (
    FAILURE_EVENTS,
    GetOnlineUsersEvent,
    IdentifyData,
    IdentifyEvent,
    InvalidFrame,
    PingEvent,
    SendMessageData,
    SendMessageEvent,
    ServerEvent,
    parse_inbound,
)
from pong_chat.services import message_service

logger = logging.getLogger(__name__)

UowFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


@dataclass(slots=True)
class ConnectionContext:
    connection_id: str
    authorization: str | None = None
    state: ConnectionState = ConnectionState.CONNECTED
    user_id: str | None = None
    display_name: str | None = None

    @property
    def identified(self) -> bool:
        return self.state == ConnectionState.IDENTIFIED


def message_payload(msg: Message, sender_name: str | None) -> dict[str, Any]:
    return {
        "id": msg.id,
        "senderId": msg.sender_id,
        "receiverId": msg.receiver_id,
        "content": msg.content,
        "sentAt": msg.sent_at.isoformat(),
        "senderName": sender_name,
    }


class RelayHandler:
    def __init__(
        self,
        manager: ConnectionManager,
        presence: PresenceRegistry,
        directory: UserDirectory,
        uow_factory: UowFactory,
        *,
        lookup_timeout: float = 5.0,
        broadcast_on_disconnect: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self.manager = manager
        self.presence = presence
        self._directory = directory
        self._uow_factory = uow_factory
        self._lookup_timeout = lookup_timeout
        self._broadcast_on_disconnect = broadcast_on_disconnect
        self._clock = clock or SystemClock()
        self.manager.on_drop = self._forget

    async def open(self, ws: Socket, *, authorization: str | None = None) -> ConnectionContext:
        ctx = ConnectionContext(connection_id=uuid.uuid4().hex, authorization=authorization)
        await self.manager.connect(ws, ctx.connection_id)
        return ctx

    async def dispatch(self, ctx: ConnectionContext, raw: str | bytes) -> None:
        try:
            event = parse_inbound(raw)
        except InvalidFrame as exc:
            await self._reject(ctx, exc)
            return

        try:
            if isinstance(event, IdentifyEvent):
                await self._identify(ctx, event.data)
            elif isinstance(event, SendMessageEvent):
                await self._send_message(ctx, event.data)
            elif isinstance(event, GetOnlineUsersEvent):
                await self._emit(ctx, ServerEvent.ONLINE_USERS, self._online_payload())
            elif isinstance(event, PingEvent):
                await self._emit(ctx, ServerEvent.PONG, {})
        except Exception:
            logger.exception("Error handling %s on %s", event.type, ctx.connection_id)
            reply = FAILURE_EVENTS.get(event.type, ServerEvent.ERROR)
            await self._emit(ctx, reply, {"error": "Internal error"})

    async def close(self, ctx: ConnectionContext) -> None:
        """Forget the connection. Safe to call more than once."""
        self.manager.disconnect(ctx.connection_id)
        ctx.state = ConnectionState.CLOSED
        await self._forget(ctx.connection_id)

    async def _forget(self, connection_id: str) -> None:
        """Drop presence for a connection that is gone."""
        entry = self.presence.unregister(connection_id)
        if entry is None:
            logger.debug("Socket %s gone without an identity", connection_id)
            return
        logger.info("User %s disconnected (%s)", entry.user_id, connection_id)
        if self._broadcast_on_disconnect and not self.presence.is_online(entry.user_id):
            await self.manager.broadcast(ServerEvent.ONLINE_USERS, self._online_payload())

    async def notify(self, receiver_ids: list[str], payload: dict[str, Any]) -> int:
        """Push a stored notification to whichever receivers are online."""
        reached = 0
        for rid in receiver_ids:
            reached += await self.manager.send_to_group(
                user_group(rid), ServerEvent.NEW_NOTIFICATION, payload,
            )
        return reached

    async def _identify(self, ctx: ConnectionContext, data: IdentifyData) -> None:
        try:
            user = await asyncio.wait_for(
                self._directory.lookup(data.user_id, authorization=ctx.authorization),
                timeout=self._lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("User lookup for %s timed out", data.user_id)
            await self._emit(ctx, ServerEvent.IDENTIFY_ERROR, {"error": "User lookup timed out"})
            return
        except ExternalLookupError as exc:
            logger.warning("User lookup for %s failed: %s", data.user_id, exc.detail)
            await self._emit(ctx, ServerEvent.IDENTIFY_ERROR, {"error": "Failed to join"})
            return

        if user is None:
            await self._emit(ctx, ServerEvent.IDENTIFY_ERROR, {"error": "User not found"})
            return

        if ctx.user_id is not None and ctx.user_id != user.id:
            self.manager.leave(ctx.connection_id, user_group(ctx.user_id))
        self.presence.register(ctx.connection_id, user.id, user.display_name)
        self.manager.join(ctx.connection_id, user_group(user.id))
        ctx.state = ConnectionState.IDENTIFIED
        ctx.user_id = user.id
        ctx.display_name = user.display_name
        logger.info("User %s joined on %s", user.id, ctx.connection_id)

        await self._emit(
            ctx,
            ServerEvent.IDENTIFY_SUCCESS,
            {"userId": user.id, "displayName": user.display_name},
        )
        await self.manager.broadcast(ServerEvent.ONLINE_USERS, self._online_payload())

    async def _send_message(self, ctx: ConnectionContext, data: SendMessageData) -> None:
        if not ctx.identified:
            await self._emit(ctx, ServerEvent.SEND_FAILED, {"error": "Identify before sending messages"})
            return
        if data.sender_id != ctx.user_id:
            await self._emit(
                ctx, ServerEvent.SEND_FAILED, {"error": "Sender does not match the identified user"},
            )
            return

        try:
            async with self._uow_factory() as uow:
                msg = await message_service.send_message(
                    data.sender_id, data.receiver_id, data.content, uow, self._clock,
                )
        except ValidationError as exc:
            await self._emit(ctx, ServerEvent.SEND_FAILED, {"error": exc.detail})
            return
        except PersistenceError:
            logger.warning("Could not store message from %s", data.sender_id, exc_info=True)
            await self._emit(ctx, ServerEvent.SEND_FAILED, {"error": "Failed to save message"})
            return

        payload = message_payload(msg, data.sender_name or ctx.display_name)
        delivered = await self.manager.send_to_group(
            user_group(msg.receiver_id),
            ServerEvent.NEW_MESSAGE,
            payload,
            exclude=ctx.connection_id,
        )
        await self._emit(ctx, ServerEvent.SEND_CONFIRMED, payload)
        logger.debug("Message %s relayed to %d connection(s)", msg.id, delivered)

    async def _reject(self, ctx: ConnectionContext, exc: InvalidFrame) -> None:
        if exc.reply == ServerEvent.ERROR:
            data: dict[str, Any] = {"code": exc.detail}
            if exc.event_type:
                data["type"] = exc.event_type
        else:
            data = {"error": exc.detail}
        await self._emit(ctx, exc.reply, data)

    def _online_payload(self) -> dict[str, Any]:
        return {"userIds": sorted(self.presence.list_online_user_ids())}

    async def _emit(self, ctx: ConnectionContext, event: ServerEvent, data: dict[str, Any]) -> None:
        await self.manager.send_to_connection(ctx.connection_id, event, data)
