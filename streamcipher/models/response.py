from pydantic import BaseModel, Field

from .formats import NormalizedFormat


class FormatsResponse(BaseModel):
    """Normalized formats plus the chosen one."""

    success: bool = Field(True, description="Whether resolution succeeded")
    video_id: str | None = Field(None, description="Video ID, when fetched by id")
    title: str | None = Field(None, description="Video title")
    duration: int | None = Field(None, description="Duration in seconds")
    age_restricted: bool | None = Field(None, description="Age-restricted content")
    player_url: str = Field(..., description="Player script the URLs were resolved with")
    functions: list[str] = Field(
        default_factory=list, description="Player functions that were extracted"
    )
    formats: list[NormalizedFormat] = Field(default_factory=list, description="All formats")
    chosen: NormalizedFormat | None = Field(None, description="Selected format")
    error_code: str | None = Field(None, description="Set when no format could be chosen")


class SnippetInfo(BaseModel):
    name: str = Field(..., description="Function name inside the player")
    entry_point: str = Field(..., description="Name the snippet is invoked by")
    source: str = Field(..., description="Standalone JavaScript source")


class FunctionsResponse(BaseModel):
    """Functions extracted from one player script."""

    player_url: str
    decipher: SnippetInfo | None = None
    n_transform: SnippetInfo | None = None


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = Field(False)
    error: str = Field(..., description="Error message")
    error_code: str | None = Field(None, description="Machine-readable error code")
