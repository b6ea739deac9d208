"""
Lexical helpers for carving pieces out of minified player JavaScript.

Two primitives:
- between(): literal substring search for a region bounded by two markers.
- cut_after_js(): returns the shortest balanced {...} or [...] region at the
  start of a text, treating string, template and regex literals as opaque.

Neither function parses JavaScript. cut_after_js() is a single-pass state
walk over (active literal, escape flag, bracket depth).
"""

import logging
import re

logger = logging.getLogger(__name__)

# Opening bracket -> closing bracket
_BRACKETS = {"{": "}", "[": "]"}


class _Literal:
    """A literal kind whose contents are skipped while counting brackets."""

    def __init__(self, start: str, end: str, start_prefix: str | None = None):
        self.start = start
        self.end = end
        self.start_prefix = re.compile(start_prefix) if start_prefix else None


# A "/" opens a regex literal only after one of [{:;, (or at the very start),
# optionally followed by one whitespace character. Anything else is division.
_REGEX_PREFIX = r"(^|[\[{:;,])\s?\Z"

# Characters looked at behind a "/" when deciding regex vs. division
REGEX_LOOKBEHIND = 10

_LITERALS = (
    _Literal('"', '"'),
    _Literal("'", "'"),
    _Literal("`", "`"),
    _Literal("/", "/", _REGEX_PREFIX),
)


def between(haystack: str, left: str, right: str) -> str:
    """Return the text strictly between the first `left` and the next `right`.

    Returns an empty string when either marker is missing.
    """
    start = haystack.find(left)
    if start < 0:
        return ""
    start += len(left)

    end = haystack.find(right, start)
    if end < 0:
        return ""
    return haystack[start:end]


def _opens_literal(text: str, pos: int) -> _Literal | None:
    char = text[pos]
    for literal in _LITERALS:
        if char != literal.start:
            continue
        if literal.start_prefix is None:
            return literal
        window = text[max(0, pos - REGEX_LOOKBEHIND) : pos]
        if literal.start_prefix.search(window):
            return literal
    return None


def cut_after_js(text: str) -> str | None:
    """
    Cut the balanced object or array literal at the start of `text`.

    The first character decides the bracket kind ("{" or "["); anything else
    returns None. Returns None as well when the region never closes.

    >>> cut_after_js('{"a":1}{"b":2}')
    '{"a":1}'
    """
    if not text or text[0] not in _BRACKETS:
        return None

    open_char = text[0]
    close_char = _BRACKETS[open_char]

    literal: _Literal | None = None
    escaped = False
    depth = 0

    for i, char in enumerate(text):
        if not escaped and literal is not None and char == literal.end:
            literal = None
            continue
        if not escaped and literal is None:
            literal = _opens_literal(text, i)
            if literal is not None:
                continue

        escaped = char == "\\" and not escaped

        if literal is not None:
            continue

        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1

        if depth == 0:
            return text[: i + 1]

    logger.debug("Unbalanced region (depth %d at end of input)", depth)
    return None
