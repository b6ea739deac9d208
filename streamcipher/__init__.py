"""Stream Cipher API package: player function extraction and format selection."""

from .config import get_settings
from .main import app

__all__ = ["app", "get_settings"]
