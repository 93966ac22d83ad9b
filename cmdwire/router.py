"""The router: root commands, named command groups and the shared context.

Typical wiring by a transport:

    router = Router.register_root(session, Commands(), config=get_config())
    router.register_subcommand(Debug())
    stop = router.start()

``start`` hooks ``handle`` into the session. ``handle`` dispatches the
event and, when a chat command fails, replies with the formatted error.
Everything that can't be replied to goes to the context's error logger.
"""

import threading
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple

import structlog

from .arguments import ArgumentRegistry, get_default_registry
from .context import Context, Session
from .dispatcher import Dispatcher
from .events import MessageCreate
from .exceptions import ConfigurationError
from .registrar import CommandDescriptor
from .subcommand import Subcommand

if TYPE_CHECKING:
    from .config import Config

logger = structlog.get_logger("cmdwire.dispatch")


class Router:
    """Owns the command tables of one bot.

    Tables are replaced, never mutated, so a dispatch that is already
    running keeps a consistent view while a subcommand is added.

    Args:
        context: Shared context handed to every handler.
        root: The root handler's reflected commands.
        registry: Custom argument types available to this router.
    """

    def __init__(
        self,
        context: Context,
        root: Subcommand,
        registry: Optional[ArgumentRegistry] = None,
    ):
        self.context = context
        self.root = root
        self.registry = registry or ArgumentRegistry(parent=get_default_registry())
        self._subcommands: Tuple[Subcommand, ...] = ()
        self._lock = threading.Lock()
        self._dispatcher = Dispatcher(self)

    @classmethod
    def register_root(
        cls,
        session: Session,
        handler: Any,
        *,
        registry: Optional[ArgumentRegistry] = None,
        config: Optional["Config"] = None,
        prefix: Optional[str] = None,
    ) -> "Router":
        """Build a router whose top-level commands come from ``handler``.

        Args:
            session: The transport.
            handler: Root handler instance; needs a ``Context`` field.
            registry: Argument registry; defaults to a fresh one backed
                by the process-wide registry.
            config: Settings for prefix, name, description and replies.
            prefix: Overrides the configured prefix.

        Raises:
            ConfigurationError: the handler can't be registered.
        """
        registry = registry or ArgumentRegistry(parent=get_default_registry())
        root = Subcommand(handler, registry)

        if config is not None:
            context = Context.from_config(session, config)
        else:
            context = Context(session=session)
        if prefix is not None:
            context.prefix = prefix

        root.init_commands(context)
        router = cls(context, root, registry)
        logger.info(
            "router_created",
            handler=type(handler).__name__,
            commands=len(root.commands),
            prefix=context.prefix,
        )
        return router

    # --- Accessors ---

    @property
    def session(self) -> Session:
        return self.context.session

    @property
    def prefix(self) -> str:
        return self.context.prefix

    @prefix.setter
    def prefix(self, value: str) -> None:
        self.context.prefix = value

    @property
    def commands(self) -> Tuple[CommandDescriptor, ...]:
        """Root-level commands."""
        return self.root.commands

    @property
    def subcommands(self) -> Tuple[Subcommand, ...]:
        """Registered groups in registration order."""
        return self._subcommands

    def subcommand(self, name: str) -> Optional[Subcommand]:
        for sub in self._subcommands:
            if sub.matches(name):
                return sub
        return None

    # --- Registration ---

    def register_subcommand(self, handler: Any) -> Subcommand:
        """Add ``handler``'s commands as a named group.

        Raises:
            ConfigurationError: bad handler shape, or a group with the
                same name already exists.
        """
        sub = Subcommand(handler, self.registry)
        sub.needs_name()

        with self._lock:
            for existing in self._subcommands:
                if existing.name == sub.name:
                    raise ConfigurationError(
                        f"new subcommand has duplicate name: {sub.name}",
                        handler=type(handler).__name__,
                    )

            sub.init_commands(self.context)
            self._subcommands = self._subcommands + (sub,)

        for command in self.root.commands:
            if command.is_message_command and sub.matches(command.name):
                logger.warning(
                    "subcommand_shadowed",
                    subcommand=sub.name,
                    command=command.name,
                )

        logger.info(
            "subcommand_registered",
            name=sub.name,
            commands=len(sub.commands),
            admin_only=sub.admin_only,
        )
        return sub

    # --- Dispatch ---

    async def dispatch(self, event: Any) -> None:
        """Route one event. See ``Dispatcher.dispatch``."""
        await self._dispatcher.dispatch(event)

    async def handle(self, event: Any) -> None:
        """Dispatch ``event`` and report any failure.

        Chat command failures are formatted and sent back to the
        channel. A failed send is logged, not retried.
        """
        try:
            await self.dispatch(event)
        except Exception as err:
            await self._report(event, err)

    async def _report(self, event: Any, err: Exception) -> None:
        ctx = self.context
        text = ctx.format_error(err)
        if not text:
            return

        if not isinstance(event, MessageCreate):
            ctx.error_logger(err)
            return

        try:
            await ctx.send(event.channel_id, text)
        except Exception as send_err:
            logger.warning(
                "error_reply_failed",
                channel_id=event.channel_id,
                error=str(send_err),
            )
            # The original failure first, then the send failure.
            ctx.error_logger(err)
            ctx.error_logger(send_err)

    def start(self) -> Callable[[], None]:
        """Start receiving events from the session.

        Returns:
            Callable that removes the handler again.
        """
        remove = self.session.add_handler(self.handle)
        logger.info("router_started", prefix=self.prefix)
        return remove


def register_root(session: Session, handler: Any, **options: Any) -> Router:
    """Shorthand for ``Router.register_root``."""
    return Router.register_root(session, handler, **options)


def register_subcommand(router: Router, handler: Any) -> Subcommand:
    """Shorthand for ``router.register_subcommand``."""
    return router.register_subcommand(handler)
