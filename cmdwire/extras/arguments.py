"""Ready-made argument types.

Importing this module registers the mention types with the
process-wide argument registry.

    async def channel(self, m: MessageCreate, ch: ChannelMention) -> None:
        info = await self.ctx.channel(ch.id)

    async def flagdemo(self, m: MessageCreate, f: Flags) -> None:
        parser = Flags.parser()
        parser.add_argument("-opt", action="store_true")
        ns = f.with_parser(parser)
"""

import argparse
import re
from typing import List, Optional

from ..arguments import register_custom_argument
from ..exceptions import InvalidArgument

# Program name shown in argparse messages.
FLAG_NAME = "command"


class _ParserExit(Exception):
    pass


class _QuietParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting."""

    def error(self, message):
        raise _ParserExit(message)

    def exit(self, status=0, message=None):
        raise _ParserExit(message or "")


class Flags:
    """Hands everything after the command name to an ArgumentParser.

    Parses the whole line, so it must be the only argument of its
    command.
    """

    def __init__(self):
        self.arguments: List[str] = []

    def parse_content(self, tokens: List[str]) -> None:
        # Drop the command name.
        self.arguments = list(tokens[1:])

    @staticmethod
    def parser(prog: str = FLAG_NAME) -> argparse.ArgumentParser:
        """A parser whose errors raise ``InvalidArgument`` via ``with_parser``."""
        return _QuietParser(prog=prog, add_help=False)

    def with_parser(self, parser: argparse.ArgumentParser) -> argparse.Namespace:
        """Parse the stored arguments.

        Raises:
            InvalidArgument: the parser rejected them.
        """
        try:
            return parser.parse_args(self.arguments)
        except _ParserExit as e:
            raise InvalidArgument(f"invalid flags: {e}", module="extras") from e


class _Mention:
    pattern = re.compile(r"")
    label = ""

    def __init__(self):
        self.id = ""

    def __str__(self) -> str:
        return self.id

    def parse(self, token: str) -> Optional[Exception]:
        match = self.pattern.fullmatch(token)
        if match is None:
            return InvalidArgument(
                f"invalid {self.label} mention: {token!r}", token=token, module="extras"
            )
        self.id = match.group(1)
        return None


class ChannelMention(_Mention):
    """``<#123>``"""

    pattern = re.compile(r"<#(\d+)>")
    label = "channel"


class UserMention(_Mention):
    """``<@123>`` or ``<@!123>``"""

    pattern = re.compile(r"<@!?(\d+)>")
    label = "user"


class RoleMention(_Mention):
    """``<@&123>``"""

    pattern = re.compile(r"<@&(\d+)>")
    label = "role"


register_custom_argument(ChannelMention())
register_custom_argument(UserMention())
register_custom_argument(RoleMention())
