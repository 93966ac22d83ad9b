"""Shared fixtures: an in-memory transport and message factory."""

import pytest

from cmdwire.context import PERMISSION_ADMINISTRATOR
from cmdwire.events import Message, MessageCreate, User


class FakeSession:
    """Records sends and answers permission lookups from a fixed admin set."""

    def __init__(self, admins=()):
        self.admins = set(admins)
        self.sent = []
        self.handlers = []
        self.permission_calls = 0
        self.fail_send = False

    async def send_message(self, channel_id, content):
        if self.fail_send:
            raise ConnectionError("transport down")
        self.sent.append((channel_id, content))

    async def user_permissions(self, channel_id, user_id):
        self.permission_calls += 1
        if user_id in self.admins:
            return PERMISSION_ADMINISTRATOR | 1
        return 1

    async def member(self, guild_id, member_id):
        return {"guild_id": guild_id, "id": member_id}

    async def role(self, guild_id, role_id):
        return {"guild_id": guild_id, "id": role_id}

    async def channel(self, channel_id):
        return {"id": channel_id}

    def add_handler(self, handler):
        self.handlers.append(handler)
        return lambda: self.handlers.remove(handler)


def make_message(content, user_id="user-1", channel_id="chan-1"):
    return MessageCreate(
        message=Message(
            id="msg-1",
            channel_id=channel_id,
            content=content,
            author=User(id=user_id, username="tester"),
        )
    )


@pytest.fixture
def session():
    return FakeSession(admins={"admin-1"})
