from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_camel = ConfigDict(
    from_attributes=True,
    alias_generator=to_camel,
    populate_by_name=True,
    coerce_numbers_to_str=True,
)


class SendMessageRequest(BaseModel):
    sender_id: str | None = None
    receiver_id: str
    content: str

    model_config = _camel


class MessageResponse(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    content: str
    sent_at: datetime
    read_at: datetime | None = None

    model_config = _camel


class ConversationResponse(BaseModel):
    key: str
    counterpart_id: str
    unread_count: int
    messages: list[MessageResponse]

    model_config = _camel


class ClearConversationResponse(BaseModel):
    message: str
    deleted_count: int

    model_config = _camel
