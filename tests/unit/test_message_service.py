from __future__ import annotations

import pytest

from pong_chat.application.exceptions import ValidationError
from pong_chat.domain.entities.conversation import conversation_key
from pong_chat.services import message_service
from tests.conftest import FakeUoW


@pytest.mark.asyncio
async def test_send_message_stores_and_commits(clock):
    uow = FakeUoW()

    msg = await message_service.send_message("u1", "u2", "hello", uow, clock)

    assert msg.sender_id == "u1"
    assert msg.receiver_id == "u2"
    assert msg.content == "hello"
    assert msg.read_at is None
    assert msg.id
    assert uow._committed is True


@pytest.mark.asyncio
async def test_sent_message_is_first_in_conversation(clock):
    uow = FakeUoW()
    await message_service.send_message("u2", "u1", "earlier", uow, clock)

    await message_service.send_message("u1", "u2", "latest", uow, clock)
    conv = await message_service.get_conversation("u1", "u2", uow)

    assert conv[0].content == "latest"
    assert conv[0].sender_id == "u1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("sender", "receiver", "content"),
    [("", "u2", "hi"), ("u1", "", "hi"), ("u1", "u2", ""), ("u1", "u2", "   ")],
)
async def test_send_message_rejects_missing_fields(sender, receiver, content):
    uow = FakeUoW()

    with pytest.raises(ValidationError):
        await message_service.send_message(sender, receiver, content, uow)

    assert uow.messages._messages == []
    assert uow._committed is False


@pytest.mark.asyncio
async def test_conversation_is_direction_agnostic(clock):
    uow = FakeUoW()
    await message_service.send_message("a", "b", "one", uow, clock)
    await message_service.send_message("b", "a", "two", uow, clock)
    await message_service.send_message("a", "c", "other", uow, clock)

    ab = await message_service.get_conversation("a", "b", uow)
    ba = await message_service.get_conversation("b", "a", uow)

    assert {m.id for m in ab} == {m.id for m in ba}
    assert [m.content for m in ab] == ["two", "one"]


@pytest.mark.asyncio
async def test_conversation_empty_is_not_an_error():
    assert await message_service.get_conversation("a", "b", FakeUoW()) == []


@pytest.mark.asyncio
async def test_user_conversations_grouped_by_counterpart(clock):
    uow = FakeUoW()
    await message_service.send_message("a", "b", "1", uow, clock)
    await message_service.send_message("c", "a", "2", uow, clock)
    await message_service.send_message("b", "a", "3", uow, clock)
    await message_service.send_message("b", "c", "not mine", uow, clock)

    convs = await message_service.get_user_conversations("a", uow)

    assert len(convs) == 2
    by_other = {c.counterpart_id: c for c in convs}
    assert set(by_other) == {"b", "c"}
    for conv in convs:
        others = {m.counterpart_of("a") for m in conv.messages}
        assert others == {conv.counterpart_id}
        assert conv.key == conversation_key("a", conv.counterpart_id)
    assert [m.content for m in by_other["b"].messages] == ["3", "1"]
    # most recent conversation first
    assert convs[0].counterpart_id == "b"


@pytest.mark.asyncio
async def test_user_conversations_count_unread(clock):
    uow = FakeUoW()
    first = await message_service.send_message("b", "a", "ping", uow, clock)
    await message_service.send_message("b", "a", "ping again", uow, clock)
    await message_service.send_message("a", "b", "pong", uow, clock)
    await message_service.mark_as_read(first.id, uow, clock)

    [conv] = await message_service.get_user_conversations("a", uow)

    assert conv.unread_count == 1
    assert conv.last_message.content == "pong"


@pytest.mark.asyncio
async def test_mark_as_read_unknown_message_returns_none():
    assert await message_service.mark_as_read("missing", FakeUoW()) is None


@pytest.mark.asyncio
async def test_mark_as_read_sets_timestamp_once(clock):
    uow = FakeUoW()
    msg = await message_service.send_message("a", "b", "hi", uow, clock)

    first = await message_service.mark_as_read(msg.id, uow, clock)
    second = await message_service.mark_as_read(msg.id, uow, clock)

    assert first is not None and first.read_at is not None
    assert second is not None
    assert second.read_at == first.read_at
    assert second.content == msg.content
    assert second.sent_at == msg.sent_at


@pytest.mark.asyncio
async def test_delete_twice_returns_false_second_time(clock):
    uow = FakeUoW()
    msg = await message_service.send_message("a", "b", "hi", uow, clock)

    assert await message_service.delete_message(msg.id, uow) is True
    assert await message_service.delete_message(msg.id, uow) is False
    assert await message_service.get_message(msg.id, uow) is None


@pytest.mark.asyncio
async def test_clear_conversation_only_touches_the_pair(clock):
    uow = FakeUoW()
    await message_service.send_message("a", "b", "1", uow, clock)
    await message_service.send_message("b", "a", "2", uow, clock)
    await message_service.send_message("a", "c", "3", uow, clock)

    removed = await message_service.clear_conversation("a", "b", uow)

    assert removed == 2
    assert await message_service.get_conversation("a", "b", uow) == []
    assert len(await message_service.get_conversation("a", "c", uow)) == 1


@pytest.mark.asyncio
async def test_user_conversations_do_not_merge_on_underscored_ids(clock):
    uow = FakeUoW()
    # "a_b_a"+"b_a" and "a_b"+"a_b_a" join to the same pair key.
    await message_service.send_message("a_b_a", "b_a", "to b_a", uow, clock)
    await message_service.send_message("a_b", "a_b_a", "from a_b", uow, clock)

    convs = await message_service.get_user_conversations("a_b_a", uow)

    assert sorted(c.counterpart_id for c in convs) == ["a_b", "b_a"]
    for conv in convs:
        assert [m.counterpart_of("a_b_a") for m in conv.messages] == [conv.counterpart_id]
