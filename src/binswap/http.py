"""Shared HTTP client with request spacing.

Only one request is in flight at a time, and consecutive requests are
spaced by at least ``min_interval`` to stay polite with the GitHub API.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from binswap import __version__
from binswap.config import Settings

USER_AGENT = f"binswap/{__version__}"


class ThrottledClient:
    """Wraps ``httpx.AsyncClient`` with a single-in-flight lock."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        min_interval: float = 0.005,
        timeout: float = 30.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        self._min_interval = min_interval
        self._lock = asyncio.Lock()
        self._last_request = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> ThrottledClient:
        return cls(
            min_interval=settings.min_request_interval_ms / 1000,
            timeout=settings.request_timeout_seconds,
        )

    async def _wait_turn(self) -> None:
        elapsed = time.monotonic() - self._last_request
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        async with self._lock:
            await self._wait_turn()
            try:
                return await self._client.get(url, **kwargs)
            finally:
                self._last_request = time.monotonic()

    @asynccontextmanager
    async def stream(self, url: str, **kwargs: Any) -> AsyncIterator[httpx.Response]:
        """Stream a GET response; the lock is held until the body is consumed."""
        async with self._lock:
            await self._wait_turn()
            try:
                async with self._client.stream("GET", url, **kwargs) as response:
                    yield response
            finally:
                self._last_request = time.monotonic()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ThrottledClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
