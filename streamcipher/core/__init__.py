"""Core pipeline: scanning, function extraction, script invocation, URL resolution and format ranking."""

from .decipher import decipher, ncode, resolve_url
from .formats import (
    FormatSelectionError,
    choose_format,
    filter_formats,
    normalize_format,
    parse_video_formats,
    sort_formats,
)
from .functions import FunctionSnippet, PlayerFunctions, extract_functions
from .invoker import ExecJSInvoker, InvocationError, ScriptInvoker, get_invoker
from .scanner import between, cut_after_js

__all__ = [
    "ExecJSInvoker",
    "FormatSelectionError",
    "FunctionSnippet",
    "InvocationError",
    "PlayerFunctions",
    "ScriptInvoker",
    "between",
    "choose_format",
    "cut_after_js",
    "decipher",
    "extract_functions",
    "filter_formats",
    "get_invoker",
    "ncode",
    "normalize_format",
    "parse_video_formats",
    "resolve_url",
    "sort_formats",
]
