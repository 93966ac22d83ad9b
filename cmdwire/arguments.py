"""Argument coercion: turning textual tokens into typed parameters.

Every parameter of a command is resolved once, at registration, into an
``ArgumentSpec``:

    Scalar(kind)                 str, int, float, bool and the sized ints
    CustomSingleToken(type, t)   a registered template with ``parse(token)``
    ManualWholeLine(type)        a class with ``parse_content(tokens)``

Unsupported parameter types are rejected right there, so dispatch only
ever sees failures caused by user input.

Custom single-token types are registered through an ``ArgumentRegistry``.
A process-wide default registry backs ``register_custom_argument``;
routers get their own registry that falls back to it.
"""

import math
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

import structlog

from .exceptions import ConfigurationError, InvalidArgument

logger = structlog.get_logger("cmdwire.registry")


# ---------------------------------------------------------------------------
# Sized integers
# ---------------------------------------------------------------------------

class SizedInt(int):
    """An ``int`` that only admits values of a fixed bit width.

    Declare a parameter as ``Int8``, ``Uint16`` etc. to have the token
    range-checked; the bound value is an instance of that class.
    """

    bits = 64
    signed = True

    def __new__(cls, value=0):
        value = int(value)
        lo, hi = cls.bounds()
        if not lo <= value <= hi:
            raise OverflowError(f"{value} out of range for {cls.__name__}")
        return super().__new__(cls, value)

    @classmethod
    def bounds(cls):
        if cls.signed:
            return -(1 << (cls.bits - 1)), (1 << (cls.bits - 1)) - 1
        return 0, (1 << cls.bits) - 1


class Int8(SizedInt):
    bits = 8


class Int16(SizedInt):
    bits = 16


class Int32(SizedInt):
    bits = 32


class Int64(SizedInt):
    bits = 64


class Uint(SizedInt):
    bits = 64
    signed = False


class Uint8(Uint):
    bits = 8


class Uint16(Uint):
    bits = 16


class Uint32(Uint):
    bits = 32


class Uint64(Uint):
    bits = 64


# ---------------------------------------------------------------------------
# Scalar parsers
# ---------------------------------------------------------------------------

_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")

_TRUE = frozenset({"true", "yes", "y", "Y", "1"})
_FALSE = frozenset({"false", "no", "n", "N", "0"})


def _parse_str(token: str) -> str:
    return token


def _to_int(token: str) -> int:
    try:
        return int(token, 10)
    except ValueError as e:
        # Past sys.get_int_max_str_digits().
        raise InvalidArgument("integer out of range", token=token) from e


def _parse_int(token: str) -> int:
    if not _SIGNED.fullmatch(token):
        raise InvalidArgument(f"invalid integer: {token!r}", token=token)
    return _to_int(token)


def _sized_parser(kind: type) -> Callable[[str], int]:
    pattern = _SIGNED if kind.signed else _UNSIGNED
    label = "integer" if kind.signed else "unsigned integer"

    def parse(token: str) -> int:
        if not pattern.fullmatch(token):
            raise InvalidArgument(f"invalid {label}: {token!r}", token=token)
        try:
            return kind(_to_int(token))
        except OverflowError as e:
            raise InvalidArgument(str(e), token=token) from e

    return parse


def _parse_float(token: str) -> float:
    # float() also takes "1_0" and surrounding whitespace; the token
    # grammar has neither.
    if "_" in token or token != token.strip():
        raise InvalidArgument(f"invalid float: {token!r}", token=token)
    try:
        value = float(token)
    except ValueError as e:
        raise InvalidArgument(f"invalid float: {token!r}", token=token) from e
    if math.isinf(value) and "inf" not in token.lower():
        raise InvalidArgument(f"float out of range: {token!r}", token=token)
    return value


def _parse_bool(token: str) -> bool:
    if token in _TRUE:
        return True
    if token in _FALSE:
        return False
    raise InvalidArgument("invalid bool [true/false]", token=token)


SCALAR_PARSERS: Dict[type, Callable[[str], Any]] = {
    str: _parse_str,
    int: _parse_int,
    float: _parse_float,
    bool: _parse_bool,
}
for _kind in (Int8, Int16, Int32, Int64, Uint, Uint8, Uint16, Uint32, Uint64):
    SCALAR_PARSERS[_kind] = _sized_parser(_kind)


# ---------------------------------------------------------------------------
# Failure-or-none convention
# ---------------------------------------------------------------------------

def failure_of(result: Any) -> Optional[BaseException]:
    """Return ``result`` if it reports a failure, else None.

    Parse hooks and commands may either raise or return an exception
    instance; anything else counts as success.
    """
    if isinstance(result, BaseException):
        return result
    return None


# ---------------------------------------------------------------------------
# Argument specs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Scalar:
    """A built-in kind converted by a fixed parser."""

    kind: type

    @property
    def type_name(self) -> str:
        return self.kind.__name__

    def coerce(self, token: str) -> Any:
        return SCALAR_PARSERS[self.kind](token)


@dataclass(frozen=True)
class CustomSingleToken:
    """A registered template instance that parses one token into itself.

    The template is reused for every call and handed to the command as
    the argument.
    """

    kind: type
    template: Any

    @property
    def type_name(self) -> str:
        return self.kind.__name__

    def coerce(self, token: str) -> Any:
        try:
            err = failure_of(self.template.parse(token))
        except InvalidArgument:
            raise
        except Exception as e:
            raise InvalidArgument(str(e), token=token) from e
        if err is not None:
            raise InvalidArgument(str(err), token=token) from err
        return self.template


@dataclass(frozen=True)
class ManualWholeLine:
    """A type that parses the complete token list itself.

    A fresh instance is built for every invocation. The parse hook's
    failure is passed through untouched.
    """

    kind: type

    @property
    def type_name(self) -> str:
        return self.kind.__name__

    def construct(self, tokens: List[str]) -> Any:
        value = self.kind()
        err = failure_of(value.parse_content(list(tokens)))
        if err is not None:
            raise err
        return value


ArgumentSpec = Union[Scalar, CustomSingleToken, ManualWholeLine]


def is_manual(kind: Any) -> bool:
    """Whether ``kind`` exposes the whole-line ``parse_content`` hook."""
    return isinstance(kind, type) and callable(getattr(kind, "parse_content", None))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ArgumentRegistry:
    """Maps an exact type to the template instance that parses it.

    Lookups and registrations share one lock, so late registration is
    safe even while other threads resolve parameters. Lookups that miss
    fall through to ``parent``.
    """

    def __init__(self, parent: Optional["ArgumentRegistry"] = None):
        self._parent = parent
        self._templates: Dict[type, Any] = {}
        self._lock = threading.RLock()

    def register(self, template: Any) -> None:
        """Register ``template`` as the parser for ``type(template)``.

        Raises:
            ConfigurationError: template has no callable ``parse``.
        """
        kind = type(template)
        if isinstance(template, type) or not callable(getattr(template, "parse", None)):
            raise ConfigurationError(
                f"custom argument {kind.__name__} has no parse(token) method",
                module="arguments",
            )
        with self._lock:
            replaced = kind in self._templates
            self._templates[kind] = template
        logger.debug(
            "custom_argument_registered", type=kind.__name__, replaced=replaced,
        )

    def lookup(self, kind: Any) -> Optional[Any]:
        with self._lock:
            template = self._templates.get(kind)
        if template is None and self._parent is not None:
            return self._parent.lookup(kind)
        return template

    def __contains__(self, kind: Any) -> bool:
        return self.lookup(kind) is not None

    def resolve(self, kind: Any) -> ArgumentSpec:
        """Resolve a declared parameter type into its ``ArgumentSpec``.

        Custom registrations win over scalars, so a registered template
        may take over a built-in kind.

        Raises:
            ConfigurationError: no way to build ``kind`` from text.
        """
        template = self.lookup(kind)
        if template is not None:
            return CustomSingleToken(kind, template)

        if kind in SCALAR_PARSERS:
            return Scalar(kind)

        if is_manual(kind):
            return ManualWholeLine(kind)

        raise ConfigurationError(
            f"invalid argument type: {getattr(kind, '__name__', repr(kind))}",
            module="arguments",
        )


# Global registry instance
_default_registry = ArgumentRegistry()


def get_default_registry() -> ArgumentRegistry:
    """Get the process-wide registry."""
    return _default_registry


def register_custom_argument(template: Any) -> None:
    """Make ``type(template)`` usable as a command parameter everywhere.

    Meant to be called at import time by modules that define argument
    types. There is no removal.
    """
    _default_registry.register(template)
