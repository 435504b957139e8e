"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import dataclasses
import json
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from pong_chat.application.dto.directory import DirectoryUser
from pong_chat.application.exceptions import ExternalLookupError, PersistenceError
from pong_chat.domain.entities.message import Message
from pong_chat.domain.entities.notification import Notification
from pong_chat.domain.value_objects.ids import MessageId, UserId


class StepClock:
    """Deterministic clock: every call moves forward by ``step``."""

    def __init__(
        self,
        start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self._current = start
        self._step = step

    def now(self) -> datetime:
        self._current += self._step
        return self._current


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


def make_message(
    *,
    sender_id: str = "42",
    receiver_id: str = "7",
    content: str = "hello",
    sent_at: datetime | None = None,
    read_at: datetime | None = None,
) -> Message:
    return Message(
        id=MessageId(str(uuid.uuid4())),
        sender_id=UserId(sender_id),
        receiver_id=UserId(receiver_id),
        content=content,
        sent_at=sent_at or datetime.now(timezone.utc),
        read_at=read_at,
    )


def _newest_first(messages: list[Message]) -> list[Message]:
    return sorted(messages, key=lambda m: m.sent_at, reverse=True)


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def get_by_id(self, message_id: str) -> Message | None:
        return next((m for m in self._messages if m.id == message_id), None)

    async def list_between(self, user_a: str, user_b: str) -> list[Message]:
        return _newest_first([
            m for m in self._messages
            if (m.sender_id, m.receiver_id) in ((user_a, user_b), (user_b, user_a))
        ])

    async def list_for_user(self, user_id: str) -> list[Message]:
        return _newest_first([
            m for m in self._messages if user_id in (m.sender_id, m.receiver_id)
        ])


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail: bool = False

    async def add(self, message: Message) -> Message:
        if self.fail:
            raise PersistenceError("Failed to save message")
        self._reader._messages.append(message)
        return message

    async def mark_read(self, message_id: str, ts: datetime) -> None:
        msgs = self._reader._messages
        for i, m in enumerate(msgs):
            if m.id == message_id and m.read_at is None:
                msgs[i] = dataclasses.replace(m, read_at=ts)

    async def delete(self, message_id: str) -> bool:
        before = len(self._reader._messages)
        self._reader._messages = [m for m in self._reader._messages if m.id != message_id]
        return len(self._reader._messages) < before

    async def delete_between(self, user_a: str, user_b: str) -> int:
        doomed = await self._reader.list_between(user_a, user_b)
        ids = {m.id for m in doomed}
        self._reader._messages = [m for m in self._reader._messages if m.id not in ids]
        return len(ids)


@dataclass
class FakeNotificationReader:
    _notifications: dict[str, Notification] = field(default_factory=dict)
    _receivers: set[tuple[str, str]] = field(default_factory=set)

    async def list_for_receiver(self, receiver_id: str) -> list[Notification]:
        ids = {nid for nid, rid in self._receivers if rid == receiver_id}
        return sorted(
            (n for n in self._notifications.values() if n.id in ids),
            key=lambda n: n.sent_at,
            reverse=True,
        )

    async def is_receiver(self, notification_id: str, receiver_id: str) -> bool:
        return (notification_id, receiver_id) in self._receivers


@dataclass
class FakeNotificationWriter:
    _reader: FakeNotificationReader

    async def add(self, notification: Notification, receiver_ids: list[str]) -> Notification:
        self._reader._notifications[notification.id] = notification
        for rid in receiver_ids:
            self._reader._receivers.add((notification.id, rid))
        return notification

    async def remove_receiver(self, notification_id: str, receiver_id: str) -> int:
        key = (notification_id, receiver_id)
        if key in self._reader._receivers:
            self._reader._receivers.discard(key)
            return 1
        return 0

    async def clear_receiver(self, receiver_id: str) -> int:
        doomed = {pair for pair in self._reader._receivers if pair[1] == receiver_id}
        self._reader._receivers -= doomed
        return len(doomed)

    async def purge_orphans(self) -> int:
        alive = {nid for nid, _ in self._reader._receivers}
        orphans = [nid for nid in self._reader._notifications if nid not in alive]
        for nid in orphans:
            del self._reader._notifications[nid]
        return len(orphans)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    notifications: FakeNotificationReader = field(default_factory=FakeNotificationReader)
    notifications_w: FakeNotificationWriter | None = None
    commits: int = 0

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)
        if self.notifications_w is None:
            self.notifications_w = FakeNotificationWriter(self.notifications)

    @property
    def _committed(self) -> bool:
        return self.commits > 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


def uow_factory_for(uow: FakeUoW):
    @asynccontextmanager
    async def _open():
        yield uow

    return _open


@dataclass
class FakeDirectory:
    """Stand-in for the user service's directory endpoint."""

    users: dict[str, str] = field(default_factory=dict)
    delay: float = 0.0
    fail: bool = False
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    async def lookup(self, user_id: str, *, authorization: str | None = None) -> DirectoryUser | None:
        self.calls.append((user_id, authorization))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ExternalLookupError("User service unavailable")
        name = self.users.get(user_id)
        return DirectoryUser(id=user_id, display_name=name) if name else None


@dataclass
class FakeFriendships:
    accepted: set[frozenset[str]] = field(default_factory=set)
    fail: bool = False

    def befriend(self, a: str, b: str) -> None:
        self.accepted.add(frozenset((a, b)))

    async def are_friends(self, user_id: str, other_id: str, *, authorization: str | None = None) -> bool:
        if self.fail:
            raise ExternalLookupError("Friendship check failed with status 500")
        return frozenset((user_id, other_id)) in self.accepted


class FakeSocket:
    """Records every frame the server sends."""

    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.broken = broken
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))

    def events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        return [e for e in self.sent if event_type is None or e["type"] == event_type]


def frame(event_type: str, data: dict[str, Any] | None = None) -> str:
    return json.dumps({"type": event_type, "data": data or {}})
