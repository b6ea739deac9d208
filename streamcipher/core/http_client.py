"""
Async HTTP client for watch pages, player scripts and player responses.

Network errors and 429/5xx responses are retried with exponential back-off
and jitter, capped at 30 s per wait; a 429's Retry-After is honoured as a
floor.
"""

import asyncio
import logging
import random
from typing import Any

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)

_MAX_BACKOFF = 30.0

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

_NETWORK_ERRORS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.PoolTimeout,
    httpx.CloseError,
)


class HTTPClient:
    """Retrying wrapper around one lazily opened httpx.AsyncClient."""

    def __init__(self, timeout: int | None = None, max_retries: int | None = None):
        settings = get_settings()
        self._timeout = timeout or settings.request_timeout
        self._max_retries = settings.max_retries if max_retries is None else max_retries
        self._headers = {
            "User-Agent": settings.user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        }
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                follow_redirects=True,
                http2=True,
                headers=self._headers,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request; retries network errors and retryable statuses."""
        client = await self._get_client()
        attempts = self._max_retries + 1
        attempt = 0

        while True:
            last_try = attempt == attempts - 1
            try:
                response = await client.request(method, url, headers=headers, json=json)
            except _NETWORK_ERRORS as exc:
                if last_try:
                    logger.error("%s %s failed after %d attempts: %r", method, url, attempts, exc)
                    raise
                reason, wait = type(exc).__name__, self._backoff(attempt)
            else:
                if last_try or response.status_code not in _RETRYABLE_STATUS_CODES:
                    return response
                reason, wait = f"HTTP {response.status_code}", self._backoff(attempt, response)

            logger.warning(
                "%s on %s %s (attempt %d/%d), retrying in %.1fs",
                reason, method, url, attempt + 1, attempts, wait,
            )
            await asyncio.sleep(wait)
            attempt += 1

    @staticmethod
    def _backoff(attempt: int, response: httpx.Response | None = None) -> float:
        wait = min(2**attempt + random.uniform(0, 1), _MAX_BACKOFF)
        if response is not None and response.status_code == 429:
            try:
                retry_after = float(response.headers.get("Retry-After", ""))
            except ValueError:
                return wait
            wait = max(wait, min(retry_after, _MAX_BACKOFF))
        return wait

    async def get_text(self, url: str, **kwargs) -> str:
        response = await self.request("GET", url, **kwargs)
        response.raise_for_status()
        return response.text

    async def post_json(self, url: str, **kwargs) -> Any:
        response = await self.request("POST", url, **kwargs)
        response.raise_for_status()
        return response.json()
