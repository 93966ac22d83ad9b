"""Tests for event models and id lookup."""

import pydantic
import pytest

from cmdwire.events import (
    MemberJoin,
    MessageCreate,
    MessageDelete,
    ReactionAdd,
    channel_id_of,
    find_id,
    guild_id_of,
    parse_event,
    user_id_of,
)

from conftest import make_message


def test_parse_message_create():
    """Message payloads should parse into MessageCreate."""
    event = parse_event("MESSAGE_CREATE", {
        "message": {
            "id": "1",
            "channel_id": "c",
            "guild_id": "g",
            "content": "~ping",
            "author": {"id": "u", "username": "someone"},
            "nonce": "extra fields are kept",
        },
    })
    assert isinstance(event, MessageCreate)
    assert event.content == "~ping"
    assert event.channel_id == "c"
    assert event.author.mention == "<@u>"


def test_parse_unknown_kind():
    """Unknown event kinds should be rejected."""
    with pytest.raises(KeyError):
        parse_event("TYPING_START", {})


def test_parse_invalid_payload():
    """Invalid payloads should raise a validation error."""
    with pytest.raises(pydantic.ValidationError):
        parse_event("MESSAGE_DELETE", {"id": "1"})


def test_ids_of_message():
    """Message ids should be read from the nested message."""
    event = make_message("~ping", user_id="u-9", channel_id="c-9")
    assert channel_id_of(event) == "c-9"
    assert user_id_of(event) == "u-9"
    assert guild_id_of(event) == ""


def test_ids_of_flat_event():
    """Flat events should expose their ids directly."""
    event = ReactionAdd(user_id="u", message_id="m", channel_id="c", guild_id="g")
    assert channel_id_of(event) == "c"
    assert user_id_of(event) == "u"
    assert guild_id_of(event) == "g"


def test_ids_of_member_join():
    """Member joins should expose the joined user id."""
    event = parse_event("GUILD_MEMBER_ADD", {"guild_id": "g", "user": {"id": "u"}})
    assert isinstance(event, MemberJoin)
    assert user_id_of(event) == "u"
    assert channel_id_of(event) == ""


def test_event_without_user():
    """Events without a user should give an empty user id."""
    event = MessageDelete(id="m", channel_id="c")
    assert user_id_of(event) == ""
    assert channel_id_of(event) == "c"


def test_find_id_on_plain_objects():
    """find_id should walk plain objects too."""
    class Channel:
        def __init__(self):
            self.id = "c-1"

    class Wrapper:
        def __init__(self):
            self.channel = Channel()

    assert find_id(Wrapper(), "channel") == "c-1"
    assert find_id(None, "channel") == ""
    assert find_id(object(), "channel") == ""
