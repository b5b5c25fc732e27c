# File: tests/test_page_processor.py
from __future__ import annotations

import pytest

from site_harvest.crawler.frontier import Frontier
from site_harvest.crawler.globs import GlobFilter
from site_harvest.crawler.models import CrawlRequest, PageRecord
from site_harvest.crawler.page_processor import PageProcessingError, PageProcessor
from site_harvest.crawler.renderer import RenderResult, StaticPage

MARKUP = """
<html lang="en">
<head>
  <title>Getting started</title>
  <meta property="og:description" content="How to begin">
  <meta property="article:published_time" content="2024-05-01">
</head>
<body>
  <a href="/docs/next">next</a>
  <a href="https://other.org/">elsewhere</a>
  <a href="mailto:team@example.com">mail</a>
</body>
</html>
"""


def build(state, dataset, *, max_depth=1, max_pages=10):
    frontier = Frontier(
        state,
        GlobFilter.compile(["https://example.com/**"]),
        max_depth=max_depth,
        max_pages=max_pages,
    )
    processor = PageProcessor(state, dataset, frontier, max_depth=max_depth, max_pages=max_pages)
    return processor, frontier


def rendered(final_url: str, markup: str = MARKUP, headers=None) -> RenderResult:
    if headers is None:
        headers = {"content-type": "text/html; charset=utf-8", "content-length": "1234"}
    return RenderResult(final_url=final_url, page=StaticPage(markup), headers=headers, status=200)


@pytest.mark.asyncio()
async def test_page_record_fields(state, dataset):
    processor, frontier = build(state, dataset)
    request = CrawlRequest("https://example.com/docs/start")

    record = await processor.process(request, rendered("https://example.com/docs/start"))

    assert isinstance(record, PageRecord)
    assert dataset.records == [record]
    assert record.public_url == "https://example.com/docs/start"
    assert record.title == "Getting started"
    assert record.description == "How to begin"
    assert record.language == "en"
    assert record.published == "2024-05-01"
    assert record.mime_type == "text/html"
    assert record.content_length == 1234
    assert record.content == MARKUP
    assert record.timestamp.endswith("Z")

    data = record.to_json()
    assert data["encoding"] is None
    assert data["content_length"] == 1234


@pytest.mark.asyncio()
async def test_links_are_enqueued_below_max_depth(state, dataset):
    processor, frontier = build(state, dataset, max_depth=1)
    await processor.process(CrawlRequest("https://example.com/docs/start"), rendered("https://example.com/docs/start"))

    assert frontier.qsize() == 1
    queued = await frontier.get()
    assert queued.original_url == "https://example.com/docs/next"
    assert queued.depth == 1
    assert frontier.snapshot()["filtered"] == 1


@pytest.mark.asyncio()
async def test_no_expansion_at_max_depth(state, dataset):
    processor, frontier = build(state, dataset, max_depth=1)
    request = CrawlRequest("https://example.com/docs/start", depth=1)

    record = await processor.process(request, rendered("https://example.com/docs/start"))

    assert record is not None
    assert frontier.qsize() == 0


@pytest.mark.asyncio()
async def test_redirect_keeps_original_url_as_identity(state, dataset):
    processor, _ = build(state, dataset)
    request = CrawlRequest("https://example.com/old")

    record = await processor.process(request, rendered("https://example.com/new"))

    assert request.loaded_url == "https://example.com/new"
    assert record.public_url == "https://example.com/old"
    assert state.is_processed("https://example.com/new")
    assert not state.is_processed("https://example.com/old")


@pytest.mark.asyncio()
async def test_second_redirect_to_same_target_is_skipped(state, dataset):
    processor, _ = build(state, dataset)
    first = await processor.process(CrawlRequest("https://example.com/a"), rendered("https://example.com/target"))
    second = await processor.process(CrawlRequest("https://example.com/b"), rendered("https://example.com/target"))

    assert first is not None
    assert second is None
    assert dataset.public_urls() == ["https://example.com/a"]
    assert state.pages_processed == 1


@pytest.mark.asyncio()
async def test_budget_exhausted_drops_record(state, dataset):
    processor, frontier = build(state, dataset, max_pages=1)
    state.try_claim("https://example.com/elsewhere", 1)

    record = await processor.process(CrawlRequest("https://example.com/docs/start"), rendered("https://example.com/docs/start"))

    assert record is None
    assert len(dataset) == 0
    assert frontier.qsize() == 0


@pytest.mark.asyncio()
async def test_missing_optional_metadata_is_omitted(state, dataset):
    processor, _ = build(state, dataset)
    markup = "<html><head><title>Bare</title></head><body></body></html>"

    record = await processor.process(
        CrawlRequest("https://example.com/bare"),
        rendered("https://example.com/bare", markup, headers={"content-type": "text/html"}),
    )

    data = record.to_json()
    for key in ("description", "language", "published", "content_length"):
        assert key not in data
    assert data["mime_type"] == "text/html"
    assert data["title"] == "Bare"


class BrokenPage(StaticPage):
    async def full_markup(self) -> str:
        raise RuntimeError("Execution context was destroyed")


@pytest.mark.asyncio()
async def test_read_failure_claims_nothing(state, dataset):
    processor, frontier = build(state, dataset)
    request = CrawlRequest("https://example.com/docs/start")
    result = RenderResult(
        final_url="https://example.com/docs/start",
        page=BrokenPage(MARKUP),
        headers={"content-type": "text/html"},
        status=200,
    )

    with pytest.raises(PageProcessingError) as excinfo:
        await processor.process(request, result)

    assert "RuntimeError" in excinfo.value.reason
    assert excinfo.value.url == "https://example.com/docs/start"
    assert not state.is_processed("https://example.com/docs/start")
    assert dataset.records == []
    assert frontier.qsize() == 0
