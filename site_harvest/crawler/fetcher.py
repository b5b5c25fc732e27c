# site_harvest/crawler/fetcher.py
"""
Raw (non-rendering) HTTP fetcher used by the download fallback.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_harvest.logger import logger
from site_harvest.utils import lower_headers

__all__ = ("FetchError", "FetchResponse", "RawFetcher")

_RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)


class FetchError(Exception):
    """Transport-level failure: connection refused, timeout, broken payload."""


@dataclass(slots=True)
class FetchResponse:
    """Status, lower-cased headers and the undecoded body."""

    url: str
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower()) or None


class RawFetcher:
    """Handles raw fetching with timeout and retry/backoff on 429/5xx."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        user_agent: str = "SiteHarvestBot/1.0",
        retry_times: int = 2,
        retry_status: Sequence[int] = _RETRY_STATUS,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.retry_times = retry_times
        self._retry_status = retry_status
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> RawFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> FetchResponse:
        """
        GET *url* and read the whole body.

        Non-2xx statuses are returned, not raised; retryable ones are retried
        first. Raises :class:`FetchError` when no response could be read.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")

        attempts = 0
        while True:
            try:
                async with self.session.get(url, allow_redirects=True) as resp:
                    if resp.status in self._retry_status and attempts < self.retry_times:
                        raise ClientError(f"retryable status {resp.status}")
                    body = await resp.read()
                    return FetchResponse(
                        url=str(resp.url),
                        status=resp.status,
                        body=body,
                        headers=lower_headers(resp.headers),
                    )
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise FetchError(f"timeout fetching {url}") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.retry_times:
                    raise FetchError(f"{exc.__class__.__name__}: {exc}") from exc
                backoff = min(2 ** (attempts - 1) * 0.5, 60)
                logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.retry_times, url, backoff)
                await asyncio.sleep(backoff)
