"""Boolean tag queries.

A query is a flat token list of tag names and the operators ``&`` and
``|``, reduced strictly left to right with no precedence:

    a | b & c   ==   (a | b) & c

A tag with no operator before it is ANDed with what came before. A tag
that has no index file is the empty set, wherever it appears.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from enum import Enum

from .errors import NoTagSpecifiedError, TagNotFoundError
from .parser.tags import require_valid_tag

_OPERATOR_SPLIT = re.compile(r"([&|])")


class Operator(str, Enum):
    AND = "&"
    OR = "|"


def tokenize(args: Iterable[str]) -> list[str]:
    """Split CLI arguments into tokens.

    Operators may be separate arguments or glued to tags (``a&b``).
    """
    tokens: list[str] = []
    for arg in args:
        for part in _OPERATOR_SPLIT.split(arg):
            part = part.strip()
            if part:
                tokens.append(part)
    return tokens


def tag_tokens(tokens: Sequence[str]) -> list[str]:
    """The tag names in ``tokens``, operators removed."""
    return [token for token in tokens if token not in (Operator.AND.value, Operator.OR.value)]


def evaluate(tokens: Sequence[str], lookup: Callable[[str], Iterable[str]]) -> list[str]:
    """Evaluate a token list against ``lookup``.

    Args:
        tokens: Tag names and ``&`` / ``|`` operators.
        lookup: Returns the documents for a tag. It may raise
            TagNotFoundError, which counts as an empty set.

    Returns:
        Sorted, deduplicated document paths.

    Raises:
        NoTagSpecifiedError: If ``tokens`` contains no tag.
        InvalidTagNameError: If a tag token is not a valid name.
    """
    tags = tag_tokens(tokens)
    if not tags:
        raise NoTagSpecifiedError()
    for tag in tags:
        require_valid_tag(tag)

    result: set[str] | None = None
    pending = Operator.AND
    for token in tokens:
        if token == Operator.AND.value:
            pending = Operator.AND
            continue
        if token == Operator.OR.value:
            pending = Operator.OR
            continue

        try:
            files = set(lookup(token))
        except TagNotFoundError:
            files = set()

        if result is None:
            result = files
        elif pending is Operator.OR:
            result |= files
        else:
            result &= files
        pending = Operator.AND

    return sorted(result or ())
