"""Split a chat line into command tokens.

Tokens are separated by single spaces and follow CSV quoting rules:
a token containing spaces is wrapped in double quotes, and a literal
quote inside one is written twice.

    ~say "hello world" "a ""quoted"" word"
    -> ["~say", "hello world", 'a "quoted" word']

Only the first line of the content is read.
"""

import csv
import io
from typing import List

from .exceptions import InvalidUsage


def parse_args(content: str) -> List[str]:
    """Tokenize ``content``.

    Returns:
        The tokens of the first line; empty for blank input.

    Raises:
        InvalidUsage: the quoting is malformed.
    """
    reader = csv.reader(
        io.StringIO(content),
        delimiter=" ",
        quotechar='"',
        doublequote=True,
        skipinitialspace=False,
        strict=True,
    )
    try:
        return next(reader, [])
    except csv.Error as e:
        raise InvalidUsage(0, f"malformed quoting: {e}", module="tokenizer") from e
