from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.helpers import int_or_none

_CIPHER_KEYS = ("signatureCipher", "signature_cipher", "cipher")


class _FormatFields(BaseModel):
    """Stream fields shared by raw and normalized formats.

    Unknown platform keys are kept in `model_extra` and written back out on
    serialization.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    itag: int | None = None
    mime_type: str | None = Field(None, alias="mimeType")
    bitrate: int | None = None
    average_bitrate: int | None = Field(None, alias="averageBitrate")
    width: int | None = None
    height: int | None = None
    fps: int | None = None
    content_length: int | None = Field(None, alias="contentLength")
    quality: str | None = None
    quality_label: str | None = Field(None, alias="qualityLabel")
    audio_quality: str | None = Field(None, alias="audioQuality")
    audio_bitrate: int | None = Field(None, alias="audioBitrate")
    audio_sample_rate: int | None = Field(None, alias="audioSampleRate")
    audio_channels: int | None = Field(None, alias="audioChannels")
    approx_duration_ms: int | None = Field(None, alias="approxDurationMs")

    @field_validator("content_length", "audio_sample_rate", "approx_duration_ms", mode="before")
    @classmethod
    def _lenient_int(cls, v: Any) -> int | None:
        # Platform sends these as decimal strings; garbage reads as absent
        return int_or_none(v)


class RawFormat(_FormatFields):
    """One stream variant exactly as the platform delivered it."""

    url: str | None = None
    signature_cipher: str | None = Field(None, alias="signatureCipher")
    cipher: str | None = None

    @property
    def is_ciphered(self) -> bool:
        return self.url is None

    @property
    def cipher_token(self) -> str:
        return self.signature_cipher or self.cipher or ""


class NormalizedFormat(_FormatFields):
    """A format with derived capability fields and a playable URL."""

    url: str
    has_video: bool = Field(False, alias="hasVideo")
    has_audio: bool = Field(False, alias="hasAudio")
    container: str | None = None
    codecs: str | None = None
    video_codec: str | None = Field(None, alias="videoCodec")
    audio_codec: str | None = Field(None, alias="audioCodec")
    is_live: bool = Field(False, alias="isLive")
    is_hls: bool = Field(False, alias="isHLS")
    is_dash_mpd: bool = Field(False, alias="isDashMPD")

    @model_validator(mode="before")
    @classmethod
    def _drop_cipher(cls, data: Any) -> Any:
        if isinstance(data, dict) and any(key in data for key in _CIPHER_KEYS):
            data = {k: v for k, v in data.items() if k not in _CIPHER_KEYS}
        return data

    @property
    def has_video_and_audio(self) -> bool:
        return self.has_video and self.has_audio
