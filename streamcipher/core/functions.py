"""
Extraction of the signature decipher and n-parameter transform functions
from a player script.

Both functions are anonymous assignments buried in minified code. They are
located by the call sites the player uses to invoke them, cut out with
cut_after_js(), and assembled into standalone snippets that a ScriptInvoker
can run without the rest of the player.

Extraction is best-effort: a role that cannot be located is None and callers
fall back to pass-through URLs.
"""

import logging
import re
from dataclasses import dataclass

from .scanner import between, cut_after_js

logger = logging.getLogger(__name__)

# Fixed entry points every assembled snippet exposes
DECIPHER_ENTRY = "decipher_signature"
N_TRANSFORM_ENTRY = "transform_n"

# (left, right) markers around the decipher function name at its call site:
#   a.set("alr","yes");c&&(c=NAME(decodeURIComponent(c)),...
_DECIPHER_NAME_ANCHORS = (('a.set("alr","yes");c&&(c=', "(decodeURIC"),)

# (left, right) markers around the n-transform function name:
#   &&(b=a.get("n"))&&(b=NAME(b) or ...&&(b=ARR[0](b)
_N_TRANSFORM_NAME_ANCHORS = (('&&(b=a.get("n"))&&(b=', "(b)"),)

# Marker preceding the helper object call inside the decipher body:
#   a=a.split("");HELPER.xy(a,3);...
_SPLIT_IDIOM = 'a=a.split("");'

_INDEXED_NAME_RE = re.compile(r"^(?P<array>[\w$]+)\[(?P<index>\d*)\]$")


@dataclass(frozen=True)
class FunctionSnippet:
    """A self-contained piece of player code exposing `entry_point`."""

    role: str
    name: str
    source: str
    entry_point: str


@dataclass(frozen=True)
class PlayerFunctions:
    """The functions extracted from one player release."""

    decipher: FunctionSnippet | None = None
    n_transform: FunctionSnippet | None = None

    @property
    def available(self) -> list[str]:
        return [
            snippet.role for snippet in (self.decipher, self.n_transform) if snippet is not None
        ]


def _find_name(script: str, anchors: tuple[tuple[str, str], ...]) -> str:
    for left, right in anchors:
        name = between(script, left, right)
        if name:
            return name
    return ""


def _cut_function(script: str, name: str) -> str | None:
    """Return `var NAME=function(a){...}` or None when it can't be cut."""
    function_start = f"{name}=function(a)"
    ndx = script.find(function_start)
    if ndx < 0:
        logger.debug("Function %r not defined in player", name)
        return None

    body = cut_after_js(script[ndx + len(function_start) :])
    if body is None:
        logger.debug("Body of %r is not balanced", name)
        return None
    return f"var {function_start}{body}"


def extract_manipulations(script: str, caller: str) -> str | None:
    """
    Return `var HELPER={...}` for the helper object `caller` uses, "" when the
    caller references no helper, or None when the helper can't be cut.
    """
    helper_name = between(caller, _SPLIT_IDIOM, ".")
    if not helper_name:
        return ""

    object_start = f"var {helper_name}={{"
    ndx = script.find(object_start)
    if ndx < 0:
        logger.debug("Helper object %r not defined in player", helper_name)
        return None

    body = cut_after_js(script[ndx + len(object_start) - 1 :])
    if body is None:
        logger.debug("Helper object %r is not balanced", helper_name)
        return None
    return f"var {helper_name}={body}"


def extract_decipher(script: str) -> FunctionSnippet | None:
    name = _find_name(script, _DECIPHER_NAME_ANCHORS)
    if not name:
        logger.debug("Decipher call site not found")
        return None

    function = _cut_function(script, name)
    if function is None:
        return None

    helper = extract_manipulations(script, function)
    if helper is None:
        return None

    source = f"{function};var {DECIPHER_ENTRY}={name};"
    if helper:
        source = f"{helper};{source}"
    source = source.replace("\n", "")
    return FunctionSnippet(role="decipher", name=name, source=source, entry_point=DECIPHER_ENTRY)


def _resolve_indexed_name(script: str, name: str) -> str:
    """Resolve `ARR[i]` to the i-th name in the `ARR=[...]` declaration."""
    m = _INDEXED_NAME_RE.match(name)
    if not m:
        return ""

    members = between(script, f"{m.group('array')}=[", "]")
    if not members:
        return ""

    names = [member.strip() for member in members.split(",")]
    index = int(m.group("index") or 0)
    return names[index] if index < len(names) else ""


def extract_n_transform(script: str) -> FunctionSnippet | None:
    name = _find_name(script, _N_TRANSFORM_NAME_ANCHORS)
    if "[" in name:
        name = _resolve_indexed_name(script, name)
    if not name:
        logger.debug("n-transform call site not found")
        return None

    function = _cut_function(script, name)
    if function is None:
        return None

    source = f"{function};var {N_TRANSFORM_ENTRY}={name};".replace("\n", "")
    return FunctionSnippet(
        role="n_transform", name=name, source=source, entry_point=N_TRANSFORM_ENTRY
    )


def extract_functions(script: str) -> PlayerFunctions:
    """Extract both player functions. Missing roles are None."""
    functions = PlayerFunctions(
        decipher=extract_decipher(script),
        n_transform=extract_n_transform(script),
    )
    if functions.decipher is None:
        logger.warning("Decipher function unavailable; ciphered formats keep their base URL")
    if functions.n_transform is None:
        logger.warning("n-transform function unavailable; URLs may be throttled")
    return functions
