# File: site_harvest/aggregator.py
"""site_harvest.aggregator: сводка по завершённому обходу."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from site_harvest.crawler.frontier import Frontier
from site_harvest.crawler.state import CrawlState
from site_harvest.utils import utc_timestamp


@dataclass(slots=True)
class CrawlSummary:
    """Итоги одного запуска: счётчики состояния и фронтира."""

    dataset_name: str
    start_urls: List[str] = field(default_factory=list)
    records_emitted: int = 0
    duration_seconds: float = 0.0
    finished_at: str = field(default_factory=utc_timestamp)
    state: Dict[str, int] = field(default_factory=dict)
    frontier: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def build_summary(
    state: CrawlState,
    *,
    dataset_name: str,
    start_urls: Optional[List[str]] = None,
    frontier: Optional[Frontier] = None,
    duration_seconds: float = 0.0,
) -> CrawlSummary:
    """Собирает CrawlSummary из состояния (и фронтира, если он есть)."""
    snapshot = state.snapshot()
    return CrawlSummary(
        dataset_name=dataset_name,
        start_urls=list(start_urls or []),
        records_emitted=snapshot.get("pages_processed", 0),
        duration_seconds=round(duration_seconds, 3),
        state=snapshot,
        frontier=frontier.snapshot() if frontier is not None else {},
    )


__all__ = ["CrawlSummary", "build_summary"]
