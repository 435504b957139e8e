"""In-process WebSocket connection manager."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Protocol

from pong_chat.infrastructure.ws.protocol import ServerEvent, encode

logger = logging.getLogger(__name__)


class Socket(Protocol):
    async def accept(self) -> None: ...
    async def send_text(self, data: str) -> None: ...


def user_group(user_id: str) -> str:
    return f"user:{user_id}"


class ConnectionManager:
    """Tracks live sockets by connection id and their broadcast groups.

    ``on_drop`` is awaited with the id of every connection removed after a
    failed send.
    """

    def __init__(self, on_drop: Callable[[str], Awaitable[None]] | None = None) -> None:
        self._connections: dict[str, Socket] = {}
        self._groups: dict[str, set[str]] = {}
        self.on_drop = on_drop

    async def connect(self, ws: Socket, connection_id: str) -> None:
        await ws.accept()
        self._connections[connection_id] = ws
        logger.debug("WS connected: %s (total=%d)", connection_id, len(self._connections))

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        for group in list(self._groups):
            self.leave(connection_id, group)
        logger.debug("WS disconnected: %s", connection_id)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def join(self, connection_id: str, group: str) -> None:
        self._groups.setdefault(group, set()).add(connection_id)

    def leave(self, connection_id: str, group: str) -> None:
        members = self._groups.get(group)
        if members:
            members.discard(connection_id)
            if not members:
                del self._groups[group]

    async def send_to_connection(
        self,
        connection_id: str,
        event: ServerEvent,
        data: dict[str, Any],
    ) -> None:
        await self._deliver([connection_id], encode(event, data))

    async def send_to_group(
        self,
        group: str,
        event: ServerEvent,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> int:
        """Send to every connection in ``group``. Returns how many were reached."""
        targets = [cid for cid in self._groups.get(group, set()) if cid != exclude]
        return await self._deliver(targets, encode(event, data))

    async def broadcast(self, event: ServerEvent, data: dict[str, Any]) -> int:
        return await self._deliver(list(self._connections), encode(event, data))

    async def _deliver(self, connection_ids: list[str], raw: str) -> int:
        dead: list[str] = []
        sent = 0
        for cid in connection_ids:
            ws = self._connections.get(cid)
            if ws is None:
                continue
            try:
                await ws.send_text(raw)
                sent += 1
            except Exception:
                logger.debug("WS send to %s failed, dropping connection", cid, exc_info=True)
                dead.append(cid)
        for cid in dead:
            self.disconnect(cid)
            if self.on_drop is not None:
                await self.on_drop(cid)
        return sent
