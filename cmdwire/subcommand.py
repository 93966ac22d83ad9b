"""A handler object's commands, optionally grouped under a name.

The root handler's commands live in the top-level namespace. Every
other handler becomes a named group, invoked as
``<prefix><group> <command> [args...]``.

A group is named by its handler's ``name`` (attribute or zero-argument
method) if present, else by the class name. Directive markers on the
class name apply to the whole group:

    class Aーdebug:          # "debug", admin only
        ctx: Context

        def description(self) -> str:
            return "debugging commands"

        async def goroutines(self, m: MessageCreate) -> None: ...
"""

from typing import Any, Optional, Tuple

import structlog

from .arguments import ArgumentRegistry
from .context import Context
from .exceptions import ConfigurationError
from .flags import Flag, normalize, parse_flag
from .registrar import CommandDescriptor, inject_context, reflect_commands

logger = structlog.get_logger("cmdwire.registry")


def _capability(handler: Any, attr: str) -> Optional[str]:
    """Read a self-describing attribute or zero-argument method."""
    value = getattr(handler, attr, None)
    if value is None:
        return None
    if callable(value):
        value = value()
    if not isinstance(value, str):
        raise ConfigurationError(
            f"{type(handler).__name__}.{attr} must be a string, "
            f"got {type(value).__name__}",
            handler=type(handler).__name__,
        )
    return value


class Subcommand:
    """Commands reflected from one handler object.

    Args:
        handler: Instance whose methods are the commands.
        registry: Resolves custom argument types.

    Raises:
        ConfigurationError: the handler has the wrong shape.
    """

    def __init__(self, handler: Any, registry: Optional[ArgumentRegistry] = None):
        self.handler = handler
        self.commands: Tuple[CommandDescriptor, ...] = reflect_commands(
            handler, registry
        )
        self.name = ""
        self.description = ""
        self.flags = Flag.NONE

    def __repr__(self) -> str:
        return (
            f"Subcommand(name={self.name!r}, flags={self.flags!r}, "
            f"commands={[c.name for c in self.commands]!r})"
        )

    @property
    def admin_only(self) -> bool:
        return self.flags.is_(Flag.ADMIN_ONLY)

    def needs_name(self) -> None:
        """Derive the group's name, flags and description."""
        flags, type_name = parse_flag(type(self.handler).__name__)
        self.flags = flags

        name = _capability(self.handler, "name") or type_name
        self.name = normalize(flags, name)
        if not self.name:
            raise ConfigurationError(
                "subcommand name is empty", handler=type(self.handler).__name__
            )

        self.description = _capability(self.handler, "description") or ""

    def init_commands(self, ctx: Context) -> None:
        """Inject the shared context into the handler."""
        field_name = inject_context(self.handler, ctx)
        logger.debug(
            "context_injected",
            handler=type(self.handler).__name__,
            field=field_name,
        )

    def matches(self, token: str) -> bool:
        """Whether ``token`` names this group."""
        if self.flags.is_(Flag.RAW):
            return token == self.name
        return token.lower() == self.name

    def find(self, token: str) -> Optional[CommandDescriptor]:
        """The chat command named ``token``, if any."""
        for command in self.commands:
            if command.is_message_command and command.matches(token):
                return command
        return None

    def handlers_for(self, event: Any) -> Tuple[CommandDescriptor, ...]:
        """Commands registered for exactly ``type(event)``."""
        kind = type(event)
        return tuple(c for c in self.commands if c.event is kind)
