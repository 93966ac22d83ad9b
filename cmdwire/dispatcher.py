"""Route one incoming event to the command(s) that handle it.

Non-message events fan out to every handler registered for the exact
event class. Their failures are only logged, since there is no
channel to reply to.

Chat messages go through the command namespace:

    1. ignore content without the prefix, or with no tokens
    2. resolve ``<command>`` at the root, else ``<group> <command>``
    3. refuse admin-only commands to non-administrators (as unknown)
    4. bind the remaining tokens to the declared parameters
    5. invoke; a returned or raised exception goes back to the caller
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

import structlog

from .arguments import failure_of
from .context import PERMISSION_ADMINISTRATOR, Session
from .events import MessageCreate, channel_id_of, user_id_of
from .exceptions import InvalidArgument, InvalidUsage, UnknownCommand
from .registrar import CommandDescriptor
from .tokenizer import parse_args

if TYPE_CHECKING:
    from .router import Router
    from .subcommand import Subcommand

logger = structlog.get_logger("cmdwire.dispatch")


async def call(invoke: Any, *args: Any) -> None:
    """Invoke a command, awaiting it if needed, and raise its failure."""
    result = invoke(*args)
    if inspect.isawaitable(result):
        result = await result
    err = failure_of(result)
    if err is not None:
        raise err


@dataclass
class DispatchState:
    """Per-dispatch scratch space. Never shared between events.

    The administrator lookup runs at most once per dispatch, however
    many gates ask for it.
    """

    event: Any
    session: Session
    _is_admin: Optional[bool] = field(default=None, repr=False)

    async def is_admin(self) -> bool:
        if self._is_admin is None:
            self._is_admin = await self._lookup_admin()
        return self._is_admin

    async def _lookup_admin(self) -> bool:
        channel_id = channel_id_of(self.event)
        if not channel_id:
            return False
        user_id = user_id_of(self.event)
        if not user_id:
            return False

        try:
            permissions = await self.session.user_permissions(channel_id, user_id)
        except Exception as e:
            logger.warning(
                "permission_lookup_failed",
                channel_id=channel_id,
                error=str(e),
            )
            return False
        return bool(permissions & PERMISSION_ADMINISTRATOR)


class Dispatcher:
    """Reads the router's current tables on every call."""

    def __init__(self, router: "Router"):
        self._router = router

    async def dispatch(self, event: Any) -> None:
        """Route ``event``.

        Raises:
            UnknownCommand: no visible command matches.
            InvalidUsage: tokens don't fit the command's parameters.
            Exception: whatever the command itself fails with.
        """
        state = DispatchState(event=event, session=self._router.session)

        if not isinstance(event, MessageCreate):
            await self._fan_out(state)
            return

        await self._dispatch_message(state)

    # --- Non-message events ---

    async def _fan_out(self, state: DispatchState) -> None:
        event = state.event
        callers: List[CommandDescriptor] = []

        for command in self._router.commands:
            if command.event is not type(event):
                continue
            if command.admin_only and not await state.is_admin():
                continue
            callers.append(command)

        for sub in self._router.subcommands:
            matching = sub.handlers_for(event)
            if not matching:
                continue
            if sub.admin_only and not await state.is_admin():
                continue
            for command in matching:
                if command.admin_only and not await state.is_admin():
                    continue
                callers.append(command)

        logger.debug(
            "event_fan_out", event_kind=type(event).__name__, handlers=len(callers),
        )

        error_logger = self._router.context.error_logger
        for command in callers:
            try:
                await call(command.invoke, event)
            except Exception as e:
                logger.debug(
                    "event_handler_failed",
                    command=command.name,
                    event_kind=type(event).__name__,
                    error=str(e),
                )
                error_logger(e)

    # --- Chat messages ---

    async def _dispatch_message(self, state: DispatchState) -> None:
        ctx = self._router.context
        prefix = ctx.prefix
        content = state.event.content

        if not content.startswith(prefix):
            return

        # Trim before splitting so multi-word prefixes work.
        tokens = parse_args(content[len(prefix):])
        if not tokens:
            return

        command, sub, offset = self._resolve(tokens)
        if command is None:
            if sub is None:
                raise UnknownCommand(tokens[0], prefix=prefix)
            raise UnknownCommand(tokens[1], parent=tokens[0], prefix=prefix)

        # Refused commands look exactly like missing ones.
        gated = command.admin_only or (sub is not None and sub.admin_only)
        if gated and not await state.is_admin():
            if sub is None:
                raise UnknownCommand(tokens[0], prefix=prefix)
            raise UnknownCommand(tokens[1], parent=tokens[0], prefix=prefix)

        logger.debug(
            "command_dispatched",
            command=command.name,
            subcommand=sub.name if sub is not None else None,
            tokens=len(tokens),
        )

        if command.manual is not None:
            value = command.manual.construct(tokens)
            await call(command.invoke, state.event, value)
            return

        # No declared parameters: trailing tokens are the command's own
        # business (it still has the raw content).
        if not command.arguments:
            await call(command.invoke, state.event)
            return

        argv = self._bind(command, tokens, offset, prefix)
        await call(command.invoke, state.event, *argv)

    def _resolve(
        self, tokens: List[str]
    ) -> Tuple[Optional[CommandDescriptor], Optional["Subcommand"], int]:
        """Find the command; a matched group with no such command
        comes back as (None, group, 2)."""
        for command in self._router.commands:
            if command.is_message_command and command.matches(tokens[0]):
                return command, None, 1

        if len(tokens) > 1:
            for sub in self._router.subcommands:
                if not sub.matches(tokens[0]):
                    continue
                return sub.find(tokens[1]), sub, 2

        return None, None, 0

    @staticmethod
    def _bind(
        command: CommandDescriptor, tokens: List[str], offset: int, prefix: str
    ) -> List[Any]:
        given = tokens[offset:]
        expected = len(command.arguments)

        if len(given) != expected:
            position = min(len(given), expected)
            reason = (
                "not enough arguments given" if len(given) < expected
                else "too many arguments given"
            )
            raise InvalidUsage(
                offset + position, reason,
                tokens=tokens, prefix=prefix, parameter=position,
            )

        argv = []
        for i, (token, spec) in enumerate(zip(given, command.arguments)):
            try:
                argv.append(spec.coerce(token))
            except InvalidArgument as e:
                raise InvalidUsage(
                    offset + i, e.message,
                    tokens=tokens, prefix=prefix, parameter=i,
                ) from e
        return argv
