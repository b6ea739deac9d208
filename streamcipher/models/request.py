from typing import Any

from pydantic import BaseModel, Field

from .enums import MediaType, Quality


class FunctionsRequest(BaseModel):
    """Request model for the /functions endpoint."""

    player_url: str = Field(
        ...,
        max_length=512,
        description="Player script path or absolute URL",
        examples=["/s/player/3bb1f723/player_ias.vflset/en_US/base.js"],
    )


class FormatsRequest(FunctionsRequest):
    """Request model for the /formats endpoint."""

    formats: list[dict[str, Any]] = Field(
        ...,
        description="Raw entries of streamingData.formats and streamingData.adaptiveFormats",
    )
    media_type: MediaType = Field(
        default=MediaType.BOTH,
        description="Streams to choose from: video-only, audio-only, or both muxed",
    )
    quality: Quality = Field(
        default=Quality.HIGHEST,
        description="Pick the highest or lowest ranked candidate",
    )
