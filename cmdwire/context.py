"""Shared context injected into every command handler.

One ``Context`` exists per router. It is handed by reference to the
first ``Context``-annotated field of every registered handler, so a
change to e.g. ``prefix`` is seen by all of them at once.

The transport itself is not part of cmdwire; it only has to satisfy the
``Session`` protocol below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING, Any, Awaitable, Callable, Optional, Protocol,
)

import structlog

if TYPE_CHECKING:
    from .config import Config
    from .events import Message

logger = structlog.get_logger("cmdwire.session")

DEFAULT_PREFIX = "~"

# Permission bit that marks a member as an administrator of a channel.
PERMISSION_ADMINISTRATOR = 1 << 3


class Session(Protocol):
    """What cmdwire needs from a chat transport.

    Lookups (``member``, ``role``, ``channel``) are expected to go
    through the transport's own cache.
    """

    async def send_message(self, channel_id: str, content: Any) -> Any: ...

    async def user_permissions(self, channel_id: str, user_id: str) -> int: ...

    async def member(self, guild_id: str, member_id: str) -> Any: ...

    async def role(self, guild_id: str, role_id: str) -> Any: ...

    async def channel(self, channel_id: str) -> Any: ...

    def add_handler(
        self, handler: Callable[[Any], Awaitable[None]]
    ) -> Callable[[], None]: ...


def format_error(err: BaseException) -> str:
    """Default reply text for a failed command."""
    return str(err)


def log_error(err: BaseException) -> None:
    """Default sink for errors that have nobody to reply to."""
    logger.error(
        "unreported_error",
        error=str(err),
        error_type=type(err).__name__,
    )


@dataclass
class Context:
    """State shared by the router and all handlers.

    Attributes:
        session: The transport.
        prefix: Text every command message starts with.
        name: Optional bot name.
        description: Optional bot description.
        format_error: Turns a dispatch failure into reply text; an empty
            string suppresses the reply.
        error_logger: Receives failures that cannot be replied to.
    """

    session: Session
    prefix: str = DEFAULT_PREFIX
    name: str = ""
    description: str = ""
    format_error: Callable[[BaseException], str] = field(
        default=format_error, repr=False
    )
    error_logger: Callable[[BaseException], None] = field(
        default=log_error, repr=False
    )

    @classmethod
    def from_config(cls, session: Session, config: "Config") -> "Context":
        """Build a context from loaded settings."""
        ctx = cls(
            session=session,
            prefix=config.prefix,
            name=config.bot_name,
            description=config.bot_description,
        )
        if not config.reply_errors:
            ctx.format_error = lambda err: ""
        return ctx

    async def send(self, channel_id: str, content: Any) -> Any:
        """Send ``content`` to a channel through the transport."""
        return await self.session.send_message(channel_id, content)

    async def reply(self, message: "Message", reply: str) -> Any:
        """Send ``reply`` to the message's channel, mentioning its author."""
        if message.author is not None:
            reply = f"{message.author.mention}, {reply}"
        return await self.send(message.channel_id, reply)

    async def member(self, guild_id: str, member_id: str) -> Any:
        return await self.session.member(guild_id, member_id)

    async def role(self, guild_id: str, role_id: str) -> Any:
        return await self.session.role(guild_id, role_id)

    async def channel(self, channel_id: str) -> Any:
        return await self.session.channel(channel_id)
