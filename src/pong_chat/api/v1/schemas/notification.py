from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SendNotificationRequest(BaseModel):
    content: str
    type: str
    receivers_ids: list[str] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class NotificationResponse(BaseModel):
    id: str
    sender_id: str
    content: str
    type: str
    sent_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ClearNotificationsResponse(BaseModel):
    cleared: int
