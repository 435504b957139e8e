"""WebSocket event envelopes.

Every frame is ``{"type": <event>, "data": {...}}``. Inbound frames are
validated twice: once as a loose envelope, then against the model of
their ``type`` through a discriminated union.
"""
from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)


class ClientEvent(StrEnum):
    IDENTIFY = "identify"
    SEND_MESSAGE = "send-message"
    GET_ONLINE_USERS = "get-online-users"
    PING = "ping"


class ServerEvent(StrEnum):
    IDENTIFY_SUCCESS = "identify-success"
    IDENTIFY_ERROR = "identify-error"
    ONLINE_USERS = "online-users"
    NEW_MESSAGE = "new-message"
    SEND_CONFIRMED = "send-confirmed"
    SEND_FAILED = "send-failed"
    NEW_NOTIFICATION = "new-notification"
    ERROR = "error"
    PONG = "pong"


# Failure event a malformed frame of a known type is answered with.
FAILURE_EVENTS: dict[str, ServerEvent] = {
    ClientEvent.IDENTIFY: ServerEvent.IDENTIFY_ERROR,
    ClientEvent.SEND_MESSAGE: ServerEvent.SEND_FAILED,
}


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlank = Annotated[str, AfterValidator(_not_blank)]


class _Payload(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class IdentifyData(_Payload):
    user_id: NonBlank = Field(alias="userId")


class SendMessageData(_Payload):
    sender_id: NonBlank = Field(alias="senderId")
    receiver_id: NonBlank = Field(alias="receiverId")
    content: NonBlank
    sender_name: str | None = Field(default=None, alias="senderName")


class IdentifyEvent(BaseModel):
    type: Literal["identify"]
    data: IdentifyData


class SendMessageEvent(BaseModel):
    type: Literal["send-message"]
    data: SendMessageData


class GetOnlineUsersEvent(BaseModel):
    type: Literal["get-online-users"]
    data: dict[str, Any] = {}


class PingEvent(BaseModel):
    type: Literal["ping"]
    data: dict[str, Any] = {}


InboundEvent = Annotated[
    Union[IdentifyEvent, SendMessageEvent, GetOnlineUsersEvent, PingEvent],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)
_KNOWN_TYPES = frozenset(e.value for e in ClientEvent)


class WsEnvelope(BaseModel):
    """Client → Server, before per-type validation."""

    type: str
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str
    data: dict[str, Any] = {}


class InvalidFrame(Exception):
    """A frame that failed validation.

    ``reply`` is the event to answer with and ``detail`` a readable reason.
    """

    def __init__(self, reply: ServerEvent, detail: str, event_type: str | None = None) -> None:
        self.reply = reply
        self.detail = detail
        self.event_type = event_type
        super().__init__(detail)


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"] if p != "data")
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_inbound(raw: str | bytes) -> IdentifyEvent | SendMessageEvent | GetOnlineUsersEvent | PingEvent:
    try:
        envelope = WsEnvelope.model_validate_json(raw)
    except ValidationError as exc:
        raise InvalidFrame(ServerEvent.ERROR, "invalid_payload") from exc

    if envelope.type not in _KNOWN_TYPES:
        raise InvalidFrame(ServerEvent.ERROR, "unknown_type", envelope.type)

    try:
        return _inbound_adapter.validate_python(envelope.model_dump())
    except ValidationError as exc:
        reply = FAILURE_EVENTS.get(envelope.type, ServerEvent.ERROR)
        raise InvalidFrame(reply, _describe(exc), envelope.type) from exc


def encode(event: ServerEvent | str, data: dict[str, Any] | None = None) -> str:
    return WsOutbound(type=str(event), data=data or {}).model_dump_json()
