# === FILE: site_harvest/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from site_harvest.crawler.download import DownloadFallbackHandler
from site_harvest.crawler.fetcher import RawFetcher
from site_harvest.crawler.frontier import Frontier
from site_harvest.crawler.globs import GlobFilter
from site_harvest.crawler.models import CrawlRequest
from site_harvest.crawler.page_processor import PageProcessingError, PageProcessor
from site_harvest.crawler.renderer import Renderer, RenderError, RenderResult
from site_harvest.crawler.state import CrawlState
from site_harvest.dataset import RecordSink
from site_harvest.logger import logger

__all__ = ("CrawlDriver", "Rendered", "RenderFailed")


@dataclass(slots=True)
class Rendered:
    result: RenderResult


@dataclass(slots=True)
class RenderFailed:
    error: RenderError


RenderOutcome = Union[Rendered, RenderFailed]


class CrawlDriver:
    """Asyncio worker pool feeding requests through render → process / fallback.

    One driver runs one crawl. Pass an existing :class:`CrawlState` to resume
    against URLs processed earlier; they are skipped, not re-emitted.
    """

    def __init__(
        self,
        renderer: Renderer,
        fetcher: RawFetcher,
        sink: RecordSink,
        *,
        max_crawl_depth: int,
        max_crawl_pages: int,
        include_glob_patterns: Sequence[str] = (),
        exclude_glob_patterns: Sequence[str] = (),
        concurrency: int = 4,
        max_request_retries: int = 3,
        state: Optional[CrawlState] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if max_request_retries < 0:
            raise ValueError("max_request_retries must be >= 0")
        # Compiling first: a bad pattern must fail before anything is dispatched.
        self.glob_filter = GlobFilter.compile(include_glob_patterns, exclude_glob_patterns)
        self.renderer = renderer
        self.sink = sink
        self.max_crawl_depth = max_crawl_depth
        self.max_crawl_pages = max_crawl_pages
        self.concurrency = concurrency
        self.max_request_retries = max_request_retries
        self.state = state if state is not None else CrawlState()
        self.frontier = Frontier(
            self.state, self.glob_filter, max_depth=max_crawl_depth, max_pages=max_crawl_pages
        )
        self.page_processor = PageProcessor(
            self.state, sink, self.frontier, max_depth=max_crawl_depth, max_pages=max_crawl_pages
        )
        self.download_handler = DownloadFallbackHandler(
            self.state, fetcher, sink, max_pages=max_crawl_pages
        )
        self.duration: float = 0.0

    @classmethod
    def from_config(
        cls,
        config,
        renderer: Renderer,
        fetcher: RawFetcher,
        sink: RecordSink,
        state: Optional[CrawlState] = None,
    ) -> CrawlDriver:
        """Build a driver from a :class:`~site_harvest.config.CrawlerConfig`."""
        return cls(
            renderer,
            fetcher,
            sink,
            max_crawl_depth=config.depth_budget,
            max_crawl_pages=config.max_crawl_pages,
            include_glob_patterns=config.include_glob_patterns,
            exclude_glob_patterns=config.exclude_glob_patterns,
            concurrency=config.min_concurrency,
            max_request_retries=config.max_request_retries,
            state=state,
        )

    async def run(self, start_urls: Iterable[str]) -> CrawlState:
        seeds = list(start_urls)
        logger.info("Starting crawl with start URLs: %s", json.dumps(seeds))
        start = time.monotonic()
        self.frontier.seed(seeds)
        workers = [asyncio.create_task(self._worker()) for _ in range(self.concurrency)]
        try:
            await self.frontier.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
        self.duration = time.monotonic() - start
        processed = self.state.pages_processed
        logger.info(
            "Finished: %d records in %.2f s (%.2f rec/s)",
            processed,
            self.duration,
            processed / self.duration if self.duration else 0,
        )
        return self.state

    async def _worker(self) -> None:
        while True:
            request = await self.frontier.get()
            try:
                await self._handle(request)
            except Exception:
                # one broken URL must not take the crawl down
                logger.exception("Unhandled error while processing %s", request.original_url)
                self.state.increment("requests_crashed")
            finally:
                self.frontier.task_done()

    async def _handle(self, request: CrawlRequest) -> None:
        if self.state.budget_reached(self.max_crawl_pages):
            logger.debug("Page budget reached, not dispatching %s", request.original_url)
            self.state.increment("requests_not_dispatched")
            return

        outcome = await self._render(request)
        if isinstance(outcome, Rendered):
            try:
                await self.page_processor.process(request, outcome.result)
            except PageProcessingError as exc:
                # nothing was claimed yet, so the page may be tried again
                self.state.increment("processing_failures")
                logger.warning("Failed to process %s: %s", request.original_url, exc.reason)
                self._retry_or_give_up(request)
            finally:
                await outcome.result.close()
            return

        self.state.increment("render_failures")
        logger.warning("Failed to render %s: %s", request.original_url, outcome.error.reason)
        await self.download_handler.handle_render_failure(request)
        if not request.no_retry:
            self._retry_or_give_up(request)

    def _retry_or_give_up(self, request: CrawlRequest) -> None:
        if request.retry_count < self.max_request_retries:
            logger.debug(
                "Retrying %s (%d/%d)", request.original_url, request.retry_count + 1, self.max_request_retries
            )
            self.frontier.retry(request)
        else:
            logger.error("Request %s failed %d times, giving up", request.original_url, request.retry_count + 1)
            self.state.increment("requests_failed")

    async def _render(self, request: CrawlRequest) -> RenderOutcome:
        try:
            result = await self.renderer.navigate(request.original_url)
        except RenderError as exc:
            return RenderFailed(exc)
        request.loaded_url = result.final_url
        return Rendered(result)
