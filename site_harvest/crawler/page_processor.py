# site_harvest/crawler/page_processor.py
"""
Turns a rendered page into a :class:`PageRecord` and feeds its links to the frontier.
"""
from __future__ import annotations

from typing import Optional

from site_harvest.crawler.extraction import get_description, get_language, get_published
from site_harvest.crawler.frontier import Frontier
from site_harvest.crawler.link_extractor import extract_links
from site_harvest.crawler.models import (
    CrawlRequest,
    PageRecord,
    parse_content_length,
    strip_mime_params,
)
from site_harvest.crawler.renderer import RenderResult
from site_harvest.crawler.state import ClaimStatus, CrawlState
from site_harvest.dataset import RecordSink
from site_harvest.logger import logger


class PageProcessingError(Exception):
    """Reading the rendered page failed before anything was claimed or emitted."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class PageProcessor:
    """Runs on every page the renderer opened."""

    def __init__(
        self,
        state: CrawlState,
        sink: RecordSink,
        frontier: Frontier,
        *,
        max_depth: int,
        max_pages: Optional[int] = None,
    ) -> None:
        self.state = state
        self.sink = sink
        self.frontier = frontier
        self.max_depth = max_depth
        self.max_pages = max_pages

    async def process(self, request: CrawlRequest, rendered: RenderResult) -> Optional[PageRecord]:
        """Extract, emit and expand. Returns ``None`` when the page is skipped."""
        if request.loaded_url is None:
            request.loaded_url = rendered.final_url
        loaded_url = request.loaded_url

        # Two requests redirected to the same target: only the first one counts.
        if self.state.is_processed(loaded_url):
            logger.warning("Skipping already downloaded page: %s", loaded_url)
            return None

        if request.redirected:
            logger.info("Crawled %s (redirected from %s)", loaded_url, request.original_url)
        else:
            logger.info("Crawled %s", loaded_url)

        try:
            record = await self._build_record(request, rendered)
        except Exception as exc:
            raise PageProcessingError(loaded_url, f"{exc.__class__.__name__}: {exc}") from exc

        claim = self.state.try_claim(loaded_url, self.max_pages)
        if claim is ClaimStatus.DUPLICATE:
            logger.warning("Skipping already downloaded page: %s", loaded_url)
            return None
        if claim is ClaimStatus.BUDGET_EXHAUSTED:
            logger.info("Page budget reached, dropping %s", loaded_url)
            return None

        self.sink.push_record(record)

        if request.depth < self.max_depth:
            links = extract_links(record.content, loaded_url)
            results = self.frontier.consider_links(links, request.depth)
            accepted = sum(1 for r in results if r.accepted)
            logger.debug("%s: %d links found, %d enqueued", loaded_url, len(links), accepted)
        else:
            logger.warning("Exceeded max crawl depth %d - not following links", request.depth)
        return record

    @staticmethod
    async def _build_record(request: CrawlRequest, rendered: RenderResult) -> PageRecord:
        page = rendered.page
        return PageRecord(
            public_url=request.original_url,
            title=await page.title(),
            description=await get_description(page),
            language=await get_language(page, rendered.headers),
            published=await get_published(page),
            mime_type=strip_mime_params(rendered.header("content-type")),
            content_length=parse_content_length(rendered.header("content-length")),
            content=await page.full_markup(),
        )


__all__ = ("PageProcessingError", "PageProcessor")
