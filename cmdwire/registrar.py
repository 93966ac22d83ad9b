"""Command discovery and the static command table.

``CommandTable`` is the explicit registration protocol: each command is
added with its name, event class, argument specs (or one manual spec),
directive flags and the callable to invoke, and ``build()`` freezes the
result into a tuple of ``CommandDescriptor``.

``reflect_commands`` fills a table from a handler object's annotated
methods, once, at registration:

    class Commands:
        ctx: Context

        async def send(self, m: MessageCreate, text: str) -> None: ...
        def Aーpurge(self, m: MessageCreate, count: Uint8) -> Optional[Exception]: ...
        async def on_edit(self, ev: MessageUpdate) -> None: ...

A method is a command when it takes at least one parameter and its
return annotation can say "no failure" (``None``, or ``Optional`` of
exception types). The first parameter's annotation is the event class
it handles. Only ``MessageCreate`` commands get argument binding.

``inject_context`` hands the shared ``Context`` to the handler.
"""

import inspect
import sys
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .arguments import (
    ArgumentRegistry,
    ArgumentSpec,
    CustomSingleToken,
    ManualWholeLine,
    Scalar,
    get_default_registry,
    is_manual,
)
from .context import Context
from .events import MessageCreate
from .exceptions import ConfigurationError
from .flags import Flag, normalize, parse_flag

logger = structlog.get_logger("cmdwire.registry")

_UNION_TYPES: Tuple[Any, ...] = (Union,)
if sys.version_info >= (3, 10):
    _UNION_TYPES += (types.UnionType,)


@dataclass(frozen=True)
class CommandDescriptor:
    """One registered command or event handler. Immutable.

    Attributes:
        name: Match name, lower-case unless ``Flag.RAW`` is set.
        event: Event class the command handles.
        invoke: Callable taking the event followed by bound arguments.
        handler: Owning handler object (None for builder-made commands).
        arguments: Per-token argument specs, in parameter order.
        manual: Whole-line spec; excludes ``arguments``.
        flags: Directive flags.
        description: One-line description.
    """

    name: str
    event: type
    invoke: Callable[..., Any]
    handler: Any = None
    arguments: Tuple[ArgumentSpec, ...] = ()
    manual: Optional[ManualWholeLine] = None
    flags: Flag = Flag.NONE
    description: str = ""

    @property
    def admin_only(self) -> bool:
        return self.flags.is_(Flag.ADMIN_ONLY)

    @property
    def is_message_command(self) -> bool:
        return self.event is MessageCreate

    def matches(self, token: str) -> bool:
        """Whether ``token`` names this command."""
        if self.flags.is_(Flag.RAW):
            return token == self.name
        return token.lower() == self.name

    def usage(self) -> str:
        """Argument summary like ``<str> <int>``."""
        if self.manual is not None:
            return f"<{self.manual.type_name}...>"
        return " ".join(f"<{a.type_name}>" for a in self.arguments)


class CommandTable:
    """Builder for an immutable tuple of ``CommandDescriptor``.

    Args:
        registry: Resolves argument types passed as plain classes.
        owner: Label used in error messages and logs.
    """

    def __init__(
        self,
        registry: Optional[ArgumentRegistry] = None,
        owner: str = "",
    ):
        self.registry = registry or get_default_registry()
        self.owner = owner
        self._commands: List[CommandDescriptor] = []
        self._names: Dict[str, CommandDescriptor] = {}

    def add(
        self,
        name: str,
        invoke: Callable[..., Any],
        *,
        event: type = MessageCreate,
        arguments: Sequence[Union[ArgumentSpec, type]] = (),
        manual: Optional[Union[ManualWholeLine, type]] = None,
        flags: Flag = Flag.NONE,
        description: str = "",
        handler: Any = None,
    ) -> CommandDescriptor:
        """Register one command.

        Raises:
            ConfigurationError: empty or duplicate name, both argument
                kinds given, or an argument type that can't be resolved.
        """
        if not name:
            raise ConfigurationError("command name is empty", handler=self.owner)
        if not isinstance(event, type):
            raise ConfigurationError(
                f"command {name}: event kind {event!r} is not a class",
                handler=self.owner,
            )
        if manual is not None and arguments:
            raise ConfigurationError(
                f"command {name}: a manual parser must be the only argument",
                handler=self.owner,
            )
        if event is not MessageCreate and (manual is not None or arguments):
            raise ConfigurationError(
                f"command {name}: only {MessageCreate.__name__} commands take arguments",
                handler=self.owner,
            )

        name = normalize(flags, name)
        if name in self._names:
            raise ConfigurationError(
                f"duplicate command name: {name}", handler=self.owner
            )

        if manual is not None and not isinstance(manual, ManualWholeLine):
            if not is_manual(manual):
                raise ConfigurationError(
                    f"command {name}: {manual!r} has no parse_content method",
                    handler=self.owner,
                )
            manual = ManualWholeLine(manual)

        specs = tuple(self._resolve(name, a) for a in arguments)

        command = CommandDescriptor(
            name=name,
            event=event,
            invoke=invoke,
            handler=handler,
            arguments=specs,
            manual=manual,
            flags=flags,
            description=description,
        )
        self._names[name] = command
        self._commands.append(command)
        return command

    def _resolve(self, name: str, arg: Union[ArgumentSpec, type]) -> ArgumentSpec:
        if isinstance(arg, (Scalar, CustomSingleToken, ManualWholeLine)):
            if isinstance(arg, ManualWholeLine):
                raise ConfigurationError(
                    f"command {name}: a manual parser must be the only argument",
                    handler=self.owner,
                )
            return arg
        try:
            spec = self.registry.resolve(arg)
        except ConfigurationError as e:
            raise ConfigurationError(
                f"command {name}: {e.message}", handler=self.owner
            ) from e
        if isinstance(spec, ManualWholeLine):
            raise ConfigurationError(
                f"command {name}: a manual parser must be the only argument",
                handler=self.owner,
            )
        return spec

    def __len__(self) -> int:
        return len(self._commands)

    def build(self) -> Tuple[CommandDescriptor, ...]:
        return tuple(self._commands)


# ---------------------------------------------------------------------------
# Reflection
# ---------------------------------------------------------------------------

def check_handler(handler: Any) -> None:
    """Reject anything that isn't an instance of a user-defined class.

    Raises:
        ConfigurationError: handler is a class, a module or a builtin value.
    """
    if isinstance(handler, type):
        raise ConfigurationError(
            f"handler is not a reference: got the class {handler.__name__}, "
            "pass an instance",
            handler=handler.__name__,
        )
    cls = type(handler)
    if (
        handler is None
        or isinstance(handler, types.ModuleType)
        or cls.__module__ == "builtins"
        or not (hasattr(handler, "__dict__") or hasattr(cls, "__slots__"))
    ):
        raise ConfigurationError(
            f"handler is not a reference to a record: {cls.__name__}",
            handler=cls.__name__,
        )


def _unwrap_optional(hint: Any) -> Tuple[Any, bool]:
    """Strip ``Optional``; returns (inner, was_optional)."""
    if typing.get_origin(hint) in _UNION_TYPES:
        members = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(members) == 1:
            return members[0], True
    return hint, False


def _reports_failure(hint: Any) -> bool:
    """Whether a return annotation can express "no failure"."""
    if hint is None or hint is type(None):
        return True
    if typing.get_origin(hint) not in _UNION_TYPES:
        return False
    members = typing.get_args(hint)
    if type(None) not in members:
        return False
    return all(
        m is type(None) or (isinstance(m, type) and issubclass(m, BaseException))
        for m in members
    )


def _type_hints(obj: Any, owner: str) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except Exception as e:
        raise ConfigurationError(
            f"cannot resolve annotations of {getattr(obj, '__qualname__', obj)!r}: {e}",
            handler=owner,
        ) from e


def _description(func: Callable[..., Any]) -> str:
    doc = inspect.getdoc(func)
    if not doc:
        return ""
    return doc.strip().splitlines()[0]


def _add_method(
    table: CommandTable, handler: Any, attr: str, func: Callable[..., Any]
) -> Optional[CommandDescriptor]:
    owner = table.owner
    method = getattr(handler, attr)
    params = list(inspect.signature(method).parameters.values())
    if not params:
        return None

    hints = _type_hints(func, owner)
    if "return" not in hints or not _reports_failure(hints["return"]):
        return None

    for p in params:
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            raise ConfigurationError(
                f"{attr}: variadic parameters are not supported", handler=owner
            )
    positional = [
        p for p in params
        if p.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        )
    ]
    required_kw = [
        p for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is p.empty
    ]
    if required_kw or not positional:
        raise ConfigurationError(
            f"{attr}: commands take the event and arguments positionally",
            handler=owner,
        )

    event, _ = _unwrap_optional(hints.get(positional[0].name))
    if not isinstance(event, type):
        raise ConfigurationError(
            f"{attr}: first parameter must be annotated with an event class",
            handler=owner,
        )

    flags, name = parse_flag(attr)
    description = _description(func)
    rest = positional[1:]

    if event is not MessageCreate:
        if any(p.default is p.empty for p in rest):
            raise ConfigurationError(
                f"{attr}: {event.__name__} handlers only receive the event",
                handler=owner,
            )
        return table.add(
            name, method, event=event, flags=flags,
            description=description, handler=handler,
        )

    manual = None
    arguments = []
    for i, p in enumerate(rest):
        if p.name not in hints:
            raise ConfigurationError(
                f"{attr}: parameter {p.name} has no type annotation",
                handler=owner,
            )
        kind, _ = _unwrap_optional(hints[p.name])
        if i == 0 and is_manual(kind) and kind not in table.registry:
            manual = kind
            if any(q.default is q.empty for q in rest[1:]):
                raise ConfigurationError(
                    f"{attr}: {kind.__name__} parses the whole line and must "
                    "be the only argument",
                    handler=owner,
                )
            break
        arguments.append(kind)

    return table.add(
        name, method, arguments=arguments, manual=manual, flags=flags,
        description=description, handler=handler,
    )


def reflect_commands(
    handler: Any, registry: Optional[ArgumentRegistry] = None
) -> Tuple[CommandDescriptor, ...]:
    """Build the command table of a handler object.

    Public methods are examined in name order; see the module docstring
    for what qualifies.

    Raises:
        ConfigurationError: handler has the wrong shape, or a command
            declares a parameter type that can't be parsed.
    """
    check_handler(handler)
    owner = type(handler).__name__
    table = CommandTable(registry, owner=owner)

    for attr, func in inspect.getmembers(type(handler), inspect.isfunction):
        if attr.startswith("_"):
            continue
        command = _add_method(table, handler, attr, func)
        if command is not None:
            logger.debug(
                "command_reflected",
                handler=owner,
                command=command.name,
                event_kind=command.event.__name__,
                arguments=len(command.arguments),
                manual=command.manual is not None,
                admin_only=command.admin_only,
            )

    commands = table.build()
    logger.info("handler_reflected", handler=owner, commands=len(commands))
    return commands


def inject_context(handler: Any, ctx: Context) -> str:
    """Set the handler's first settable ``Context`` field to ``ctx``.

    Fields are taken in annotation order (base classes first). Only the
    first match is set; later ``Context`` fields are left alone.

    Returns:
        Name of the field that was set.

    Raises:
        ConfigurationError: the handler has no such field.
    """
    check_handler(handler)
    owner = type(handler).__name__
    hints = _type_hints(type(handler), owner)

    for name, hint in hints.items():
        if typing.get_origin(hint) is typing.ClassVar:
            continue
        kind, _ = _unwrap_optional(hint)
        if kind is not Context:
            continue
        try:
            setattr(handler, name, ctx)
        except AttributeError:
            continue
        return name

    raise ConfigurationError(
        f"no field annotated with {Context.__name__} found on {owner}",
        handler=owner,
    )
