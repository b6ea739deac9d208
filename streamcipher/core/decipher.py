"""
Turns a format's cipher token or throttled URL into a playable URL.

decipher() recovers the signature from a `signatureCipher` query string and
writes it into the base URL; ncode() rewrites the throttling `n` parameter.
Every failure degrades to the best URL already available: the platform
changes its obfuscation without notice, and a stream that plays slowly beats
no stream at all.
"""

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs, parse_qsl, unquote, urlencode, urlsplit, urlunsplit

from ..models.formats import RawFormat
from .functions import FunctionSnippet, PlayerFunctions
from .invoker import InvocationError, ScriptInvoker

logger = logging.getLogger(__name__)

_DEFAULT_SIGNATURE_PARAM = "signature"


@dataclass(frozen=True)
class CipherQuery:
    """Decoded components of a `signatureCipher`/`cipher` token."""

    s: str | None
    url: str | None
    sp: str

    @classmethod
    def parse(cls, token: str) -> "CipherQuery":
        args = parse_qs(token)
        return cls(
            s=args.get("s", [None])[0],
            url=args.get("url", [None])[0],
            sp=args.get("sp", [_DEFAULT_SIGNATURE_PARAM])[0] or _DEFAULT_SIGNATURE_PARAM,
        )


def _set_query_param(url: str, name: str, value: str, append: bool) -> str:
    """Replace `name` in the query of `url`; add it when `append` and absent.

    Raises ValueError when `url` is not an absolute URL.
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"not an absolute URL: {url!r}")
    pairs = parse_qsl(parts.query, keep_blank_values=True)

    found = False
    query = []
    for key, old in pairs:
        if key == name:
            query.append((key, value))
            found = True
        else:
            query.append((key, old))

    if append and not found:
        query.append((name, value))

    return urlunsplit(parts._replace(query=urlencode(query)))


def decipher(url: str, snippet: FunctionSnippet | None, invoker: ScriptInvoker) -> str:
    """
    Recover the signature in cipher token `url` and return the signed URL.

    Falls back to the token's base `url` (or `url` itself when it has none).
    """
    args = CipherQuery.parse(url)
    fallback = args.url if args.url is not None else url

    if args.s is None or snippet is None:
        return fallback

    try:
        signature = invoker.invoke(snippet.source, snippet.entry_point, args.s)
    except InvocationError as e:
        logger.debug("Signature decipher failed: %s", e)
        return fallback

    if not args.url:
        return fallback

    try:
        return _set_query_param(args.url, args.sp, signature, append=True)
    except ValueError as e:
        logger.debug("Cannot rebuild signed URL %r: %s", args.url, e)
        return fallback


def ncode(url: str, snippet: FunctionSnippet | None, invoker: ScriptInvoker) -> str:
    """Replace the throttling `n` parameter of `url`; `url` on any failure."""
    try:
        components = parse_qs(urlsplit(unquote(url)).query)
    except ValueError as e:
        logger.debug("Cannot parse URL %r: %s", url, e)
        return url

    n = components.get("n", [None])[0]
    if n is None or snippet is None:
        return url

    try:
        transformed = invoker.invoke(snippet.source, snippet.entry_point, n)
    except InvocationError as e:
        logger.debug("n-transform failed: %s", e)
        return url

    try:
        return _set_query_param(url, "n", transformed, append=False)
    except ValueError as e:
        logger.debug("Cannot rebuild URL %r: %s", url, e)
        return url


def resolve_url(fmt: RawFormat, functions: PlayerFunctions, invoker: ScriptInvoker) -> str:
    """Return the playable URL for one raw format."""
    if fmt.is_ciphered:
        deciphered = decipher(fmt.cipher_token, functions.decipher, invoker)
        return ncode(deciphered, functions.n_transform, invoker)
    return ncode(fmt.url, functions.n_transform, invoker)
