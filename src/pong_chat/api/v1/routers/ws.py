from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from pong_chat.config import settings
from pong_chat.infrastructure.ws.protocol import ServerEvent
from pong_chat.infrastructure.ws.relay import ConnectionContext, RelayHandler

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
) -> None:
    relay: RelayHandler = websocket.app.state.relay
    # Forwarded as-is to the user service during identify.
    authorization = websocket.headers.get("authorization")
    if authorization is None and token:
        authorization = f"Bearer {token}"

    ctx = await relay.open(websocket, authorization=authorization)
    heartbeat_task = asyncio.create_task(
        _heartbeat(relay, ctx), name=f"ws-heartbeat-{ctx.connection_id}",
    )
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Text and binary frames go through the same parser.
            raw = message.get("text") or message.get("bytes") or ""
            await relay.dispatch(ctx, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error on %s", ctx.connection_id)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        heartbeat_task.cancel()
        await relay.close(ctx)


async def _heartbeat(relay: RelayHandler, ctx: ConnectionContext) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    while relay.manager.is_connected(ctx.connection_id):
        await asyncio.sleep(interval)
        await relay.manager.send_to_connection(ctx.connection_id, ServerEvent.PONG, {})
