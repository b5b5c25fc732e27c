# site_harvest/crawler/state.py
"""
Shared dedup state of one crawl run.
"""
from __future__ import annotations

import threading
from collections import defaultdict
from enum import Enum
from typing import Dict, Iterable, Optional, Set

from site_harvest.utils import normalize_url


class ClaimStatus(str, Enum):
    """Outcome of :meth:`CrawlState.try_claim`."""

    CLAIMED = "claimed"
    DUPLICATE = "duplicate"
    BUDGET_EXHAUSTED = "budget_exhausted"


class CrawlState:
    """Processed URLs and the page counter, shared by every worker.

    All mutations go through one lock: a check followed by an insert must
    never interleave with another worker's check.
    """

    def __init__(self, processed_urls: Optional[Iterable[str]] = None) -> None:
        self._lock = threading.Lock()
        self._processed: Set[str] = set()
        self._pages_processed = 0
        self._counters: Dict[str, int] = defaultdict(int)
        for url in processed_urls or ():
            self._processed.add(self._key(url))

    @staticmethod
    def _key(url: str) -> str:
        return normalize_url(url) or url

    @property
    def pages_processed(self) -> int:
        with self._lock:
            return self._pages_processed

    def is_processed(self, url: str) -> bool:
        with self._lock:
            return self._key(url) in self._processed

    def budget_reached(self, max_pages: Optional[int]) -> bool:
        if max_pages is None:
            return False
        with self._lock:
            return self._pages_processed >= max_pages

    def try_claim(self, url: str, max_pages: Optional[int] = None) -> ClaimStatus:
        """Atomically mark *url* processed and take one slot of the page budget."""
        key = self._key(url)
        with self._lock:
            if key in self._processed:
                self._counters["duplicates_skipped"] += 1
                return ClaimStatus.DUPLICATE
            if max_pages is not None and self._pages_processed >= max_pages:
                self._counters["budget_skipped"] += 1
                return ClaimStatus.BUDGET_EXHAUSTED
            self._processed.add(key)
            self._pages_processed += 1
            return ClaimStatus.CLAIMED

    def increment(self, name: str, value: int = 1) -> None:
        """Bump a diagnostic counter."""
        if not name or value == 0:
            return
        with self._lock:
            self._counters[name] += value

    def processed_urls(self) -> Set[str]:
        with self._lock:
            return set(self._processed)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return {
                "pages_processed": self._pages_processed,
                "processed_urls": len(self._processed),
                **dict(self._counters),
            }


__all__ = ("ClaimStatus", "CrawlState")
