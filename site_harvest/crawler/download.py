# site_harvest/crawler/download.py
"""
Download fallback: raw fetch of documents the renderer could not open.
"""
from __future__ import annotations

import base64
from typing import Optional

from site_harvest.crawler.fetcher import FetchError, RawFetcher
from site_harvest.crawler.mime import infer_mime_type, is_downloadable
from site_harvest.crawler.models import CrawlRequest, FileRecord, parse_content_length
from site_harvest.crawler.state import ClaimStatus, CrawlState
from site_harvest.dataset import RecordSink
from site_harvest.logger import logger


class DownloadFallbackHandler:
    """Runs when rendering a request failed."""

    def __init__(
        self,
        state: CrawlState,
        fetcher: RawFetcher,
        sink: RecordSink,
        *,
        max_pages: Optional[int] = None,
    ) -> None:
        self.state = state
        self.fetcher = fetcher
        self.sink = sink
        self.max_pages = max_pages

    async def handle_render_failure(self, request: CrawlRequest) -> Optional[FileRecord]:
        """Download *request* if it looks like a supported document.

        Once the extension check passes the request is flagged ``no_retry``,
        whether or not the download works out: a document is never sent back
        to the renderer.
        """
        url = request.original_url
        if self.state.is_processed(url):
            logger.warning("Skipping already downloaded file: %s", url)
            return None
        if not is_downloadable(url):
            logger.info("Not downloading %s because its extension is not whitelisted", url)
            return None

        request.no_retry = True
        logger.info("Downloading file: %s", url)
        try:
            response = await self.fetcher.fetch(url)
        except FetchError as exc:
            logger.error("There was a problem with the fetch operation for %s: %s", url, exc)
            return None
        if not response.ok:
            logger.error("Error fetching %s: HTTP %s", url, response.status)
            return None

        logger.info("Successfully downloaded %s: %d bytes", url, len(response.body))
        record = FileRecord(
            public_url=url,
            content=base64.b64encode(response.body).decode("ascii"),
            mime_type=infer_mime_type(response.headers, url),
            content_length=parse_content_length(response.header("content-length")),
        )

        claim = self.state.try_claim(url, self.max_pages)
        if claim is ClaimStatus.DUPLICATE:
            logger.warning("Skipping already downloaded file: %s", url)
            return None
        if claim is ClaimStatus.BUDGET_EXHAUSTED:
            logger.info("Page budget reached, dropping download of %s", url)
            return None

        self.sink.push_record(record)
        return record


__all__ = ("DownloadFallbackHandler",)
