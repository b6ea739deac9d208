"""
Platform extractors.

An extractor downloads the watch page, player script and player response of
a video and hands them to the core pipeline.
"""

from .base import BaseExtractor, ExtractionError
from .youtube import YouTubeExtractor

__all__ = ["BaseExtractor", "ExtractionError", "YouTubeExtractor"]
