"""
Base extractor class: HTTP access and helpers for pulling data out of pages.
"""

import json
import logging
import re
from typing import Any

from ..core.http_client import HTTPClient
from ..core.scanner import cut_after_js

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when media extraction fails."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class BaseExtractor:
    """
    Shared plumbing for extractors.

    Provides a lazily created HTTP client and helper for pulling
    JSON objects embedded in pages.
    """

    def __init__(self, http: HTTPClient | None = None):
        self._http = http

    @property
    def http(self) -> HTTPClient:
        """Lazy-initialized HTTP client."""
        if self._http is None:
            self._http = HTTPClient()
        return self._http

    async def close(self):
        if self._http:
            await self._http.close()
            self._http = None

    async def _download_webpage(self, url: str, **kwargs) -> str:
        return await self.http.get_text(url, **kwargs)

    async def _post_json(self, url: str, **kwargs) -> Any:
        return await self.http.post_json(url, **kwargs)

    def _search_json(
        self,
        start_pattern: str,
        text: str,
        name: str = "JSON",
        default: Any = None,
    ) -> Any:
        """Parse the JSON object or array assigned right after `start_pattern`."""
        match = re.search(rf"{start_pattern}\s*[=:]\s*", text)
        if not match:
            if default is not None:
                return default
            raise ExtractionError(f"Unable to find {name}")

        region = cut_after_js(text[match.end() :])
        if region is None:
            logger.debug("No balanced JSON after %s", name)
            return default

        try:
            return json.loads(region)
        except json.JSONDecodeError:
            logger.debug("Invalid JSON for %s", name)
            return default
