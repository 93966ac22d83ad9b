"""Custom exception hierarchy for cmdwire.

Separates registration-time failures (malformed handlers, duplicate
names, unsupported argument types) from dispatch-time failures that
are shown to the chat user (unknown commands, bad usage).

Handler failures are not wrapped: whatever a command raises or
returns is passed through verbatim.
"""

from enum import Enum
from typing import Any, Optional, Sequence


class ErrorCategory(str, Enum):
    """Classification of errors for reply/escalation decisions."""
    CONFIGURATION = "configuration"  # Handler shape is wrong, fatal at startup
    USAGE = "usage"                  # User typed something we can't route or bind
    INTERNAL = "internal"            # Transport or hook failures


class CmdwireError(Exception):
    """Base exception for all cmdwire errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification.
        module: Originating module name (e.g. "registrar").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def user_facing(self) -> bool:
        """Whether the error is meant to be formatted back to the user."""
        return self.category == ErrorCategory.USAGE

    def __str__(self) -> str:
        return self.message or self.__class__.__name__

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class ConfigurationError(CmdwireError):
    """A handler object or one of its methods has an unusable shape.

    Only raised while registering; never at dispatch time.
    """

    def __init__(
        self,
        message: str = "",
        *,
        handler: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.CONFIGURATION,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.handler = handler
        super().__init__(
            message, category=category, module=module or "registrar", **context
        )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class UnknownCommand(CmdwireError):
    """No command (visible to this user) matches the typed name.

    Attributes:
        command: The token that failed to resolve.
        parent: Subcommand name when the miss happened inside one.
        prefix: Command prefix in effect, for reply formatting.
    """

    def __init__(
        self,
        command: str,
        *,
        parent: Optional[str] = None,
        prefix: str = "",
        category: ErrorCategory = ErrorCategory.USAGE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        self.parent = parent
        self.prefix = prefix

        message = "Unknown command: " + command
        if parent:
            message += f" (in {parent})"

        super().__init__(
            message, category=category, module=module or "dispatcher", **context
        )


class InvalidUsage(CmdwireError):
    """The tokens could not be bound to the command's parameters.

    Attributes:
        index: Index into ``tokens`` of the offending (or first missing) token.
        reason: Why binding failed.
        tokens: The full token list, command name(s) included.
        prefix: Command prefix in effect.
        parameter: Zero-based position of the parameter, if known.
    """

    def __init__(
        self,
        index: int,
        reason: str = "",
        *,
        tokens: Sequence[str] = (),
        prefix: str = "",
        parameter: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.USAGE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.index = index
        self.reason = reason
        self.tokens = tuple(tokens)
        self.prefix = prefix
        self.parameter = parameter

        if index == 0 and not reason:
            message = "Invalid usage"
        elif reason:
            message = f"Invalid usage at {index}: {reason}"
        else:
            message = f"Invalid usage at {index}"

        super().__init__(
            message, category=category, module=module or "dispatcher", **context
        )


class InvalidArgument(CmdwireError):
    """A single token could not be converted to the declared type."""

    def __init__(
        self,
        message: str = "",
        *,
        token: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.USAGE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.token = token
        super().__init__(
            message, category=category, module=module or "arguments", **context
        )
