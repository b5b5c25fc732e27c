# site_harvest/crawler/renderer.py
"""
Renderer interface and the plain-HTTP backend.

A renderer opens a URL and hands back a page handle the extraction code can
query. Anything it cannot open (network error, error status, non-HTML
content) surfaces as :class:`RenderError`, which routes the request to the
download fallback.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup
from bs4.element import Tag

from site_harvest.logger import logger
from site_harvest.utils import lower_headers

__all__ = (
    "RenderError",
    "RenderedPage",
    "RenderResult",
    "Renderer",
    "StaticPage",
    "HttpRenderer",
)

_HTML_MIME_TYPES = ("text/html", "application/xhtml+xml")


class RenderError(Exception):
    """The renderer could not open the resource."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class RenderedPage(Protocol):
    """DOM handle of a rendered page."""

    async def title(self) -> str: ...

    async def evaluate_selector(self, selector: str, attribute: str) -> Optional[str]: ...

    async def full_markup(self) -> str: ...

    async def close(self) -> None: ...


@dataclass(slots=True)
class RenderResult:
    """Successful navigation: where we ended up, response headers, DOM handle."""

    final_url: str
    page: RenderedPage
    headers: Dict[str, str] = field(default_factory=dict)
    status: Optional[int] = None

    def header(self, name: str) -> Optional[str]:
        value = self.headers.get(name.lower())
        return value or None

    async def close(self) -> None:
        await self.page.close()


class Renderer(Protocol):
    async def navigate(self, url: str) -> RenderResult: ...


class StaticPage:
    """Page handle over already downloaded markup, queried with BeautifulSoup."""

    def __init__(self, markup: str) -> None:
        self._markup = markup
        self._soup = BeautifulSoup(markup, "html.parser")

    async def title(self) -> str:
        tag = self._soup.find("title")
        return tag.get_text(strip=True) if isinstance(tag, Tag) else ""

    async def evaluate_selector(self, selector: str, attribute: str) -> Optional[str]:
        element = self._soup.select_one(selector)
        if element is None:
            return None
        value = element.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        return value

    async def full_markup(self) -> str:
        return self._markup

    async def close(self) -> None:
        return None


class HttpRenderer:
    """Renderer without a browser: GET the URL, accept HTML only.

    Useful for static sites and tests. JavaScript is not executed.
    """

    def __init__(self, *, timeout: float = 60.0, user_agent: str = "SiteHarvestBot/1.0") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.session: Optional[ClientSession] = None

    async def __aenter__(self) -> HttpRenderer:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.timeout),
            headers={"User-Agent": self.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def navigate(self, url: str) -> RenderResult:
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, allow_redirects=True) as resp:
                headers = lower_headers(resp.headers)
                if resp.status >= 400:
                    raise RenderError(url, f"HTTP {resp.status}")
                mime = headers.get("content-type", "").split(";", 1)[0].strip().lower()
                if mime not in _HTML_MIME_TYPES:
                    raise RenderError(url, f"unsupported content type {mime or 'unknown'!r}")
                text = await resp.text(errors="replace")
                final_url = str(resp.url)
                status = resp.status
        except (ClientError, asyncio.TimeoutError) as exc:
            raise RenderError(url, f"{exc.__class__.__name__}: {exc}") from exc
        logger.debug("Rendered %s -> %s (HTTP %s)", url, final_url, status)
        return RenderResult(final_url=final_url, page=StaticPage(text), headers=headers, status=status)
