"""Directive markers embedded in command and subcommand identifiers.

A method or class name may start with one or more directive letters
followed by the separator ``ー`` (U+30FC, a valid identifier character):

    def Aーecho(self, m: MessageCreate) -> None: ...   # admin only
    def Rーgc(self, m: MessageCreate) -> None: ...     # matched as "gc", case-exact
    class ARーDebug: ...                               # both

Parsing never fails. A prefix containing any unknown letter is not a
directive and the identifier is returned unchanged.
"""

import enum
from typing import Dict, Tuple

SEPARATOR = "ー"


class Flag(enum.IntFlag):
    NONE = 0
    # Hidden from, and refused to, non-administrators.
    ADMIN_ONLY = enum.auto()
    # Keep the identifier's original casing and match it exactly.
    RAW = enum.auto()

    def is_(self, other: "Flag") -> bool:
        """Whether every bit of ``other`` is set."""
        return bool(other) and self & other == other


_MARKERS: Dict[str, Flag] = {
    "A": Flag.ADMIN_ONLY,
    "R": Flag.RAW,
}


def parse_flag(identifier: str) -> Tuple[Flag, str]:
    """Split ``identifier`` into its directive flags and the clean name."""
    head, sep, name = identifier.partition(SEPARATOR)
    if not sep or not head or not name:
        return Flag.NONE, identifier

    flag = Flag.NONE
    for marker in head:
        if marker not in _MARKERS:
            return Flag.NONE, identifier
        flag |= _MARKERS[marker]

    return flag, name


def normalize(flag: Flag, name: str) -> str:
    """Lower-case ``name`` unless the raw directive is set."""
    if flag.is_(Flag.RAW):
        return name
    return name.lower()
