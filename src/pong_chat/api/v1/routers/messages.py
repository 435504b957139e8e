from __future__ import annotations

from fastapi import APIRouter, Response, status

from pong_chat.api.deps import AuthorizationHeader, CurrentPrincipal, FriendshipDep, UoWDep
from pong_chat.api.v1.schemas.message import (
    ClearConversationResponse,
    ConversationResponse,
    MessageResponse,
    SendMessageRequest,
)
from pong_chat.application.exceptions import NotFoundError
from pong_chat.application.policies.permissions import (
    assert_can_clear,
    assert_can_delete,
    assert_can_mark_read,
    assert_can_send,
    assert_self,
)
from pong_chat.services import message_service

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/{user_id}/conv/{friend_id}", response_model=list[MessageResponse])
async def get_conversation(
    user_id: str,
    friend_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[MessageResponse]:
    assert_self(principal, user_id)
    messages = await message_service.get_conversation(user_id, friend_id, uow)
    if not messages:
        raise NotFoundError("There is no conversation between those users")
    return [MessageResponse.model_validate(m) for m in messages]


@router.get("/{user_id}/chat", response_model=list[ConversationResponse])
async def list_conversations(
    user_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationResponse]:
    assert_self(principal, user_id)
    convs = await message_service.get_user_conversations(user_id, uow)
    if not convs:
        raise NotFoundError("There are no conversations for this user")
    return [ConversationResponse.model_validate(c) for c in convs]


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    friendships: FriendshipDep,
    authorization: AuthorizationHeader = None,
) -> MessageResponse:
    sender_id = body.sender_id or principal.user_id
    await assert_can_send(
        principal, sender_id, body.receiver_id, friendships, authorization=authorization,
    )
    msg = await message_service.send_message(sender_id, body.receiver_id, body.content, uow)
    return MessageResponse.model_validate(msg)


@router.patch("/{msg_id}", response_model=MessageResponse)
async def mark_message_as_read(
    msg_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    assert_can_mark_read(principal, await message_service.get_message(msg_id, uow))
    updated = await message_service.mark_as_read(msg_id, uow)
    if updated is None:
        raise NotFoundError("Message not found")
    return MessageResponse.model_validate(updated)


@router.delete("/{msg_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    msg_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> Response:
    assert_can_delete(principal, await message_service.get_message(msg_id, uow))
    await message_service.delete_message(msg_id, uow)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{user_id}/conv/{friend_id}/clear", response_model=ClearConversationResponse)
async def clear_conversation(
    user_id: str,
    friend_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ClearConversationResponse:
    assert_can_clear(principal, user_id, friend_id)
    count = await message_service.clear_conversation(user_id, friend_id, uow)
    return ClearConversationResponse(
        message=f"Conversation cleared successfully. {count} messages deleted.",
        deleted_count=count,
    )
