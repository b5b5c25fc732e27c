# File: tests/conftest.py
from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from site_harvest.crawler.fetcher import FetchError, FetchResponse
from site_harvest.crawler.renderer import RenderError, RenderResult, StaticPage
from site_harvest.crawler.state import CrawlState
from site_harvest.dataset import MemoryDataset

HTML_HEADERS = {"content-type": "text/html; charset=utf-8"}


class FakeRenderer:
    """
    Serves canned markup. URLs without a page fail with RenderError,
    URLs listed in ``errors`` raise the given exception instead.
    """

    def __init__(self) -> None:
        self.pages: Dict[str, tuple[str, Dict[str, str]]] = {}
        self.redirects: Dict[str, str] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[str] = []

    def add(self, url: str, markup: str, headers: Optional[Dict[str, str]] = None) -> None:
        self.pages[url] = (markup, dict(headers if headers is not None else HTML_HEADERS))

    async def navigate(self, url: str) -> RenderResult:
        self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        final_url = self.redirects.get(url, url)
        if final_url not in self.pages:
            raise RenderError(url, "HTTP 404")
        markup, headers = self.pages[final_url]
        return RenderResult(final_url=final_url, page=StaticPage(markup), headers=headers, status=200)


class FakeFetcher:
    """Canned raw downloads; unknown URLs fail like a refused connection."""

    def __init__(self) -> None:
        self.responses: Dict[str, FetchResponse] = {}
        self.calls: List[str] = []

    def add(self, url: str, body: bytes, headers: Optional[Dict[str, str]] = None, status: int = 200) -> None:
        self.responses[url] = FetchResponse(url=url, status=status, body=body, headers=dict(headers or {}))

    async def fetch(self, url: str) -> FetchResponse:
        self.calls.append(url)
        if url not in self.responses:
            raise FetchError(f"ClientConnectorError: cannot connect to {url}")
        return self.responses[url]


@pytest.fixture()
def state() -> CrawlState:
    """Fresh crawl state."""
    return CrawlState()


@pytest.fixture()
def dataset() -> MemoryDataset:
    """In-memory record sink."""
    return MemoryDataset("test")


@pytest.fixture()
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
