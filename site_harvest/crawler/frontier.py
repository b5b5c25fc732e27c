# site_harvest/crawler/frontier.py
"""
Frontier: decides which discovered links become crawl requests and queues them.
"""
from __future__ import annotations

import asyncio
import threading
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from site_harvest.crawler.globs import GlobFilter
from site_harvest.crawler.models import CrawlRequest
from site_harvest.crawler.state import CrawlState
from site_harvest.logger import logger
from site_harvest.utils import normalize_url


class EnqueueStatus(str, Enum):
    """Result status for a link considered by the frontier."""

    ENQUEUED = "enqueued"
    DEPTH_EXCEEDED = "depth_exceeded"
    FILTERED = "filtered"
    BUDGET_EXHAUSTED = "budget_exhausted"
    DUPLICATE = "duplicate"
    INVALID_URL = "invalid_url"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    request: Optional[CrawlRequest] = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class Frontier:
    """Work queue of a crawl run plus the checks guarding it.

    ``max_depth`` is a hop budget: seeds are depth 0 and a link found on a
    page at depth ``d`` is enqueued at ``d + 1`` only if that stays within it.
    Callers translate user-facing depth conventions before building the
    frontier.
    """

    def __init__(
        self,
        state: CrawlState,
        glob_filter: GlobFilter,
        *,
        max_depth: int,
        max_pages: int,
    ) -> None:
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self.state = state
        self.glob_filter = glob_filter
        self.max_depth = max_depth
        self.max_pages = max_pages
        self._queue: asyncio.Queue[CrawlRequest] = asyncio.Queue()
        self._lock = threading.Lock()
        self._enqueued: Set[str] = set()
        self._counts: Dict[str, int] = defaultdict(int)

    # ------------------------------------------------------------------ #
    # Admission                                                           #
    # ------------------------------------------------------------------ #

    def seed(self, urls: Iterable[str]) -> List[EnqueueResult]:
        """Enqueue start URLs at depth 0. Seeds are not glob-filtered."""
        results = []
        for url in urls:
            if normalize_url(url) is None:
                logger.warning("Ignoring invalid start URL: %r", url)
                results.append(self._count(EnqueueResult(EnqueueStatus.INVALID_URL)))
                continue
            results.append(self._admit(url, depth=0))
        return results

    def consider_link(self, candidate_url: str, parent_depth: int) -> EnqueueResult:
        """Enqueue *candidate_url* found on a page at *parent_depth*, or say why not."""
        depth = parent_depth + 1
        if depth > self.max_depth:
            return self._count(EnqueueResult(EnqueueStatus.DEPTH_EXCEEDED))
        if normalize_url(candidate_url) is None:
            return self._count(EnqueueResult(EnqueueStatus.INVALID_URL))
        if not self.glob_filter.matches(candidate_url):
            return self._count(EnqueueResult(EnqueueStatus.FILTERED))
        if self.state.budget_reached(self.max_pages):
            return self._count(EnqueueResult(EnqueueStatus.BUDGET_EXHAUSTED))
        return self._admit(candidate_url, depth=depth)

    def consider_links(self, urls: Iterable[str], parent_depth: int) -> List[EnqueueResult]:
        return [self.consider_link(url, parent_depth) for url in urls]

    def retry(self, request: CrawlRequest) -> None:
        """Put a failed request back; it was admitted once already."""
        request.retry_count += 1
        request.loaded_url = None
        self._queue.put_nowait(request)
        self._count(EnqueueResult(EnqueueStatus.ENQUEUED, request), key="retried")

    def _admit(self, url: str, *, depth: int) -> EnqueueResult:
        request = CrawlRequest(original_url=url, depth=depth)
        with self._lock:
            if request.unique_key in self._enqueued:
                self._counts[EnqueueStatus.DUPLICATE.value] += 1
                return EnqueueResult(EnqueueStatus.DUPLICATE)
            self._enqueued.add(request.unique_key)
            self._counts[EnqueueStatus.ENQUEUED.value] += 1
        self._queue.put_nowait(request)
        logger.debug("Enqueued %s (depth %d)", url, depth)
        return EnqueueResult(EnqueueStatus.ENQUEUED, request)

    def _count(self, result: EnqueueResult, key: Optional[str] = None) -> EnqueueResult:
        with self._lock:
            self._counts[key or result.status.value] += 1
        return result

    # ------------------------------------------------------------------ #
    # Queue access for the driver                                         #
    # ------------------------------------------------------------------ #

    async def get(self) -> CrawlRequest:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()

    def snapshot(self) -> Dict[str, int]:
        """Counters per enqueue status, for logs and the crawl summary."""
        with self._lock:
            return {
                "queue_size": self._queue.qsize(),
                "enqueued_urls": len(self._enqueued),
                **dict(self._counts),
            }


__all__ = ("EnqueueStatus", "EnqueueResult", "Frontier")
