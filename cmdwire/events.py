"""Pydantic models for the events a transport delivers.

``MessageCreate`` is the canonical chat-message kind: only its content
is tokenized and routed through the command namespace. Every other
event class is routed by type alone to handlers whose first parameter
is annotated with it.

Transports that receive JSON can build events with ``parse_event``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """The author of a message or the subject of a member event."""
    model_config = ConfigDict(extra="allow")

    id: str
    username: str = ""
    bot: bool = False

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


class Channel(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    guild_id: Optional[str] = None
    name: str = ""
    topic: str = ""


class Message(BaseModel):
    """A chat message as seen by the transport."""
    model_config = ConfigDict(extra="allow")

    id: str = ""
    channel_id: str = ""
    guild_id: Optional[str] = None
    content: str = ""
    author: Optional[User] = None
    mentions: List[User] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


class Event(BaseModel):
    """Base class for everything a transport may push."""
    model_config = ConfigDict(extra="allow")


class MessageCreate(Event):
    """A new chat message. The only event kind parsed as a command."""
    message: Message

    @property
    def content(self) -> str:
        return self.message.content

    @property
    def channel_id(self) -> str:
        return self.message.channel_id

    @property
    def author(self) -> Optional[User]:
        return self.message.author


class MessageUpdate(Event):
    message: Message
    before: Optional[Message] = None


class MessageDelete(Event):
    id: str
    channel_id: str
    guild_id: Optional[str] = None


class ReactionAdd(Event):
    user_id: str
    message_id: str
    channel_id: str
    guild_id: Optional[str] = None
    emoji: str = ""


class MemberJoin(Event):
    guild_id: str
    user: User
    joined_at: Optional[datetime] = None


EVENT_KINDS: Dict[str, Type[Event]] = {
    "MESSAGE_CREATE": MessageCreate,
    "MESSAGE_UPDATE": MessageUpdate,
    "MESSAGE_DELETE": MessageDelete,
    "MESSAGE_REACTION_ADD": ReactionAdd,
    "GUILD_MEMBER_ADD": MemberJoin,
}


def parse_event(kind: str, payload: Dict[str, Any]) -> Event:
    """Build the event model for a transport payload.

    Args:
        kind: Gateway event name, e.g. ``"MESSAGE_CREATE"``.
        payload: Decoded JSON body of the event.

    Raises:
        KeyError: unknown event kind.
        pydantic.ValidationError: payload does not match the model.
    """
    return EVENT_KINDS[kind].model_validate(payload)


# ---------------------------------------------------------------------------
# Id lookup
# ---------------------------------------------------------------------------

def _fields(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, BaseModel):
        return {name: getattr(obj, name) for name in type(obj).model_fields}
    try:
        return dict(vars(obj))
    except TypeError:
        return {}


def find_id(obj: Any, thing: str, _depth: int = 0) -> str:
    """Find the ``<thing>_id`` carried anywhere inside ``obj``.

    Looks for a ``<thing>_id`` string attribute, or an ``id`` attribute
    on an object whose class name contains ``<Thing>``, then recurses
    into nested objects. Authors count as users.

    Returns:
        The id, or an empty string when none is found.
    """
    if obj is None or _depth > 8:
        return ""

    fields = _fields(obj)
    wanted = f"{thing}_id"

    value = fields.get(wanted)
    if isinstance(value, str) and value:
        return value

    if thing.capitalize() in type(obj).__name__:
        value = fields.get("id")
        if isinstance(value, str) and value:
            return value

    for name, value in fields.items():
        if isinstance(value, (str, bytes, int, float, bool, list, tuple, dict)):
            continue
        found = find_id(value, thing, _depth + 1)
        if not found and thing == "user" and name == "author":
            author_id = _fields(value).get("id")
            found = author_id if isinstance(author_id, str) else ""
        if found:
            return found

    return ""


def channel_id_of(event: Any) -> str:
    return find_id(event, "channel")


def user_id_of(event: Any) -> str:
    return find_id(event, "user")


def guild_id_of(event: Any) -> str:
    return find_id(event, "guild")
