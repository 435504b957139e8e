from __future__ import annotations

from fastapi import APIRouter, Response, status

from pong_chat.api.deps import CurrentPrincipal, RelayDep, UoWDep
from pong_chat.api.v1.schemas.notification import (
    ClearNotificationsResponse,
    NotificationResponse,
    SendNotificationRequest,
)
from pong_chat.services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/me", response_model=list[NotificationResponse])
async def my_notifications(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[NotificationResponse]:
    notifs = await notification_service.list_notifications(principal.user_id, uow)
    return [NotificationResponse.model_validate(n) for n in notifs]


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def send_notification(
    body: SendNotificationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    relay: RelayDep,
) -> NotificationResponse:
    notif, receivers = await notification_service.send_notification(
        principal.user_id, body.receivers_ids, body.content, body.type, uow,
    )
    response = NotificationResponse.model_validate(notif)
    await relay.notify(receivers, response.model_dump(mode="json", by_alias=True))
    return response


@router.delete("/clear-all", response_model=ClearNotificationsResponse)
async def clear_all_notifications(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ClearNotificationsResponse:
    cleared = await notification_service.clear_notifications(principal.user_id, uow)
    return ClearNotificationsResponse(cleared=cleared)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> Response:
    await notification_service.delete_notification(notification_id, principal.user_id, uow)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
