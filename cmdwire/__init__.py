"""Command registration and dispatch for event-driven chat bots.

Reflects handler objects into typed command tables and routes incoming
events to them, coercing message tokens into declared parameter types.
"""

from .arguments import (
    ArgumentRegistry,
    CustomSingleToken,
    Int8,
    Int16,
    Int32,
    Int64,
    ManualWholeLine,
    Scalar,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    get_default_registry,
    register_custom_argument,
)
from .context import PERMISSION_ADMINISTRATOR, Context, Session
from .events import (
    Channel,
    Event,
    MemberJoin,
    Message,
    MessageCreate,
    MessageDelete,
    MessageUpdate,
    ReactionAdd,
    User,
    parse_event,
)
from .exceptions import (
    CmdwireError,
    ConfigurationError,
    ErrorCategory,
    InvalidArgument,
    InvalidUsage,
    UnknownCommand,
)
from .flags import Flag, parse_flag
from .registrar import CommandDescriptor, CommandTable, reflect_commands
from .router import Router, register_root, register_subcommand
from .subcommand import Subcommand
from .tokenizer import parse_args

__version__ = "0.3.0"

__all__ = [
    # Routing
    "Router",
    "register_root",
    "register_subcommand",
    "Subcommand",
    "CommandDescriptor",
    "CommandTable",
    "reflect_commands",
    # Context
    "Context",
    "Session",
    "PERMISSION_ADMINISTRATOR",
    # Arguments
    "ArgumentRegistry",
    "Scalar",
    "CustomSingleToken",
    "ManualWholeLine",
    "register_custom_argument",
    "get_default_registry",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    # Events
    "Event",
    "MessageCreate",
    "MessageUpdate",
    "MessageDelete",
    "ReactionAdd",
    "MemberJoin",
    "Message",
    "User",
    "Channel",
    "parse_event",
    # Errors
    "CmdwireError",
    "ConfigurationError",
    "ErrorCategory",
    "InvalidArgument",
    "InvalidUsage",
    "UnknownCommand",
    # Helpers
    "Flag",
    "parse_flag",
    "parse_args",
]
