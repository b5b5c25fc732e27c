# === FILE: site_harvest/scanner.py ===
"""
Wiring of one crawl run: renderer, fetcher, dataset and driver.
"""
from __future__ import annotations

from typing import Optional

from site_harvest.aggregator import CrawlSummary, build_summary
from site_harvest.config import CrawlerConfig
from site_harvest.crawler.crawler import CrawlDriver
from site_harvest.crawler.fetcher import RawFetcher
from site_harvest.crawler.renderer import HttpRenderer
from site_harvest.crawler.state import CrawlState
from site_harvest.dataset import JsonlDataset, RecordSink
from site_harvest.logger import logger


def build_renderer(cfg: CrawlerConfig):
    """Renderer backend selected by ``cfg.renderer``."""
    if cfg.renderer == "http":
        return HttpRenderer(timeout=cfg.navigation_timeout, user_agent=cfg.user_agent)
    # playwright is heavy to import; only load it when asked for
    from site_harvest.crawler.browser import PlaywrightRenderer

    return PlaywrightRenderer(
        navigation_timeout=cfg.navigation_timeout,
        user_agent=cfg.user_agent,
        headless=cfg.headless,
    )


async def start_crawl(
    cfg: CrawlerConfig,
    *,
    sink: Optional[RecordSink] = None,
    state: Optional[CrawlState] = None,
) -> CrawlSummary:
    """
    Runs the crawl described by *cfg* and returns its summary.

    Parameters
    ----------
    cfg : CrawlerConfig
        Validated crawl configuration.
    sink : RecordSink, optional
        Where records go. Defaults to the JSONL dataset ``cfg.dataset_name``
        under ``cfg.storage_dir``.
    state : CrawlState, optional
        State of an earlier run to resume against.
    """
    logger.info("Requested maxCrawlDepth is %d (%d hops)", cfg.max_crawl_depth, cfg.depth_budget)
    logger.info("Requested maxCrawlPages is %d", cfg.max_crawl_pages)
    logger.info("Requested datasetName is %s", cfg.dataset_name)
    logger.info("Requested includeGlobPatterns is %s", cfg.include_glob_patterns)
    logger.info("Requested excludeGlobPatterns is %s", cfg.exclude_glob_patterns)

    dataset = sink if sink is not None else JsonlDataset.open(cfg.storage_dir, cfg.dataset_name)
    renderer = build_renderer(cfg)
    fetcher = RawFetcher(timeout=cfg.timeout, user_agent=cfg.user_agent, retry_times=cfg.retry_times)
    driver = CrawlDriver.from_config(cfg, renderer, fetcher, dataset, state=state)
    async with renderer, fetcher:
        final_state = await driver.run(cfg.start_urls)

    return build_summary(
        final_state,
        dataset_name=cfg.dataset_name,
        start_urls=cfg.start_urls,
        frontier=driver.frontier,
        duration_seconds=driver.duration,
    )


__all__ = ["start_crawl", "build_renderer"]
