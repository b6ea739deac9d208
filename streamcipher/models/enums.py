from enum import Enum


class MediaType(str, Enum):
    """Which streams a selection considers."""

    VIDEO = "video"
    AUDIO = "audio"
    BOTH = "both"


class Quality(str, Enum):
    HIGHEST = "highest"
    LOWEST = "lowest"
