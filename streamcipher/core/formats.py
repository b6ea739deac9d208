"""
Format normalization, filtering and ranking.

normalize_format() resolves a raw format's playable URL and stamps derived
capability fields onto it. choose_format() filters normalized formats by the
requested media type and ranks the survivors with a cascade of integer keys,
compared descending, first non-zero difference wins.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import cmp_to_key
from typing import Any

from ..models.enums import MediaType, Quality
from ..models.formats import NormalizedFormat, RawFormat
from .decipher import resolve_url
from .functions import PlayerFunctions
from .invoker import ScriptInvoker
from .scanner import between

logger = logging.getLogger(__name__)

# Earlier entries are preferred
VIDEO_ENCODING_RANKS = (
    "mp4v",
    "avc1",
    "Sorenson H.283",
    "MPEG-4 Visual",
    "VP8",
    "VP9",
    "H.264",
)
AUDIO_ENCODING_RANKS = ("mp4a", "mp3", "vorbis", "aac", "opus", "flac")

_LIVE_RE = re.compile(r"\bsource[/=]yt_live_broadcast\b")
_HLS_RE = re.compile(r"/manifest/hls_(variant|playlist)/")
_DASH_MPD_RE = re.compile(r"/manifest/dash/")

# Fields only a normalized record carries, by attribute name and platform alias
_DERIVED_KEYS = frozenset(
    key
    for name, field in NormalizedFormat.model_fields.items()
    if name not in RawFormat.model_fields
    for key in (name, field.alias)
    if key
)

# Known stream fields copied from a raw record as-is
_SHARED_FIELDS = set(RawFormat.model_fields) - {"url", "signature_cipher", "cipher"}


class FormatSelectionError(Exception):
    """Raised when there is no candidate format to choose from."""

    pass


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _split_codecs(codecs: str) -> list[str]:
    return [c.strip() for c in codecs.split(",")]


def _prior_resolution(fmt: RawFormat | NormalizedFormat) -> tuple[str, bool, bool] | None:
    """(url, has_video, has_audio) of a record that was normalized before."""
    if isinstance(fmt, NormalizedFormat):
        return fmt.url, fmt.has_video, fmt.has_audio

    extras = fmt.model_extra or {}
    if fmt.url is None or not _DERIVED_KEYS.intersection(extras):
        return None
    has_video = extras.get("hasVideo", extras.get("has_video"))
    has_audio = extras.get("hasAudio", extras.get("has_audio"))
    return fmt.url, has_video is True, has_audio is True


def normalize_format(
    fmt: RawFormat | NormalizedFormat,
    functions: PlayerFunctions,
    invoker: ScriptInvoker,
) -> NormalizedFormat:
    """
    Derive capability fields and the playable URL for one format.

    A record that was normalized before, whether as a NormalizedFormat or as
    its serialized dict, keeps its resolved URL and capability flags.
    """
    prior = _prior_resolution(fmt)
    if prior is not None:
        url, has_video, has_audio = prior
    else:
        url, has_video, has_audio = resolve_url(fmt, functions, invoker), False, False
    has_video = has_video or fmt.quality_label is not None
    has_audio = has_audio or fmt.audio_bitrate is not None or fmt.audio_quality is not None

    container = None
    codecs = None
    if fmt.mime_type is not None:
        media_type = fmt.mime_type.split(";")[0].split("/")
        if len(media_type) > 1 and media_type[1]:
            container = media_type[1]
        codecs = between(fmt.mime_type, 'codecs="', '"') or None

    codec_list = _split_codecs(codecs) if codecs else []
    video_codec = codec_list[0] if has_video and codec_list and codec_list[0] else None
    audio_codec = codec_list[-1] if has_audio and codec_list and codec_list[-1] else None

    # Unknown keys travel verbatim, nulls included; stale derived keys do not
    data: dict[str, Any] = {
        key: value for key, value in (fmt.model_extra or {}).items() if key not in _DERIVED_KEYS
    }
    data.update(
        fmt.model_dump(
            include=_SHARED_FIELDS,
            exclude_none=True,
        )
    )
    data.update(
        url=url,
        has_video=has_video,
        has_audio=has_audio,
        container=container,
        codecs=codecs,
        video_codec=video_codec,
        audio_codec=audio_codec,
        is_live=bool(_LIVE_RE.search(url)),
        is_hls=bool(_HLS_RE.search(url)),
        is_dash_mpd=bool(_DASH_MPD_RE.search(url)),
    )
    return NormalizedFormat.model_validate(data)


def parse_video_formats(
    player_response: dict,
    functions: PlayerFunctions,
    invoker: ScriptInvoker,
    workers: int | None = None,
) -> list[NormalizedFormat] | None:
    """
    Normalize every format in a player response's streamingData.

    Returns None when the response carries no streamingData. With workers > 1
    the formats are resolved on a thread pool; order is preserved.
    """
    streaming_data = player_response.get("streamingData")
    if streaming_data is None:
        return None

    entries = (streaming_data.get("formats") or []) + (
        streaming_data.get("adaptiveFormats") or []
    )
    raw_formats = [RawFormat.model_validate(f) for f in entries]

    def normalize(fmt: RawFormat) -> NormalizedFormat:
        return normalize_format(fmt, functions, invoker)

    if workers and workers > 1 and len(raw_formats) > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="normalize") as pool:
            formats = list(pool.map(normalize, raw_formats))
    else:
        formats = [normalize(f) for f in raw_formats]

    logger.debug("Normalized %d formats", len(formats))
    return formats


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def quality_label_score(fmt: NormalizedFormat) -> int:
    label = fmt.quality_label or "0p"
    if label.endswith("p"):
        label = label[:-1]
    try:
        return int(label)
    except ValueError:
        return 0


def _encoding_rank(table: Sequence[str]) -> Callable[[NormalizedFormat], int]:
    def rank(fmt: NormalizedFormat) -> int:
        if not fmt.codecs:
            return -1
        for index, encoding in enumerate(table):
            if encoding in fmt.codecs:
                return len(table) - index
        return -1

    return rank


video_encoding_rank = _encoding_rank(VIDEO_ENCODING_RANKS)
audio_encoding_rank = _encoding_rank(AUDIO_ENCODING_RANKS)

# Priority order; the first key to tell two formats apart decides
RANK_KEYS: tuple[Callable[[NormalizedFormat], int], ...] = (
    lambda f: int(f.is_hls),
    lambda f: int(f.is_dash_mpd),
    lambda f: int((f.content_length or 0) > 0),
    lambda f: int(f.has_video_and_audio),
    lambda f: int(f.has_video),
    quality_label_score,
    lambda f: f.bitrate or 0,
    lambda f: f.audio_bitrate or 0,
    video_encoding_rank,
    audio_encoding_rank,
)


def compare_formats(
    a: NormalizedFormat,
    b: NormalizedFormat,
    keys: Iterable[Callable[[NormalizedFormat], int]] = RANK_KEYS,
) -> int:
    """Negative when `a` ranks above `b`, positive when below, 0 on a tie."""
    for key in keys:
        res = key(b) - key(a)
        if res != 0:
            return res
    return 0


def sort_formats(formats: Iterable[NormalizedFormat]) -> list[NormalizedFormat]:
    """Return formats best first. Ties keep their input order."""
    return sorted(formats, key=cmp_to_key(compare_formats))


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def filter_formats(
    formats: Iterable[NormalizedFormat], media_type: MediaType
) -> list[NormalizedFormat]:
    if media_type == MediaType.AUDIO:
        return [f for f in formats if f.has_audio and not f.has_video]
    if media_type == MediaType.VIDEO:
        return [f for f in formats if f.has_video and not f.has_audio]
    return [f for f in formats if f.has_video_and_audio]


def choose_format(
    formats: Sequence[NormalizedFormat],
    media_type: MediaType = MediaType.BOTH,
    quality: Quality = Quality.HIGHEST,
) -> NormalizedFormat:
    """
    Pick the best (or worst) format of the requested media type.

    When any matching format is HLS, the candidates widen to every format that
    is HLS or not live, so HLS variants win over non-HLS live streams.

    Raises FormatSelectionError when no candidate remains.
    """
    candidates = filter_formats(formats, media_type)

    if any(f.is_hls for f in candidates):
        candidates = [f for f in formats if f.is_hls or not f.is_live]

    if not candidates:
        raise FormatSelectionError(
            f"No {media_type.value} format among {len(formats)} candidates"
        )

    ranked = sort_formats(candidates)
    return ranked[0] if quality == Quality.HIGHEST else ranked[-1]
