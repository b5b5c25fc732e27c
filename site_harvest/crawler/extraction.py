# site_harvest/crawler/extraction.py
"""
Metadata extraction as ordered fallback chains.

Each extractor is a coroutine ``(page, headers) -> str | None``. A chain is a
tuple of extractors; :func:`first_present` walks it and returns the first
non-empty value. Missing tags and headers are not errors, they just yield
``None`` and the next extractor gets its turn.
"""
from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Optional, Sequence

from site_harvest.crawler.renderer import RenderedPage

Extractor = Callable[[RenderedPage, Mapping[str, str]], Awaitable[Optional[str]]]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def get_meta_tag(page: RenderedPage, name: str) -> Optional[str]:
    """``content`` of ``<meta name=...>`` or ``<meta property=...>``."""
    selector = f'meta[name="{name}"], meta[property="{name}"]'
    return _clean(await page.evaluate_selector(selector, "content"))


def meta_tag(name: str) -> Extractor:
    async def extract(page: RenderedPage, headers: Mapping[str, str]) -> Optional[str]:
        return await get_meta_tag(page, name)

    extract.__name__ = f"meta_tag[{name}]"
    return extract


def response_header(name: str) -> Extractor:
    key = name.lower()

    async def extract(page: RenderedPage, headers: Mapping[str, str]) -> Optional[str]:
        return _clean(headers.get(key))

    extract.__name__ = f"response_header[{key}]"
    return extract


async def html_lang(page: RenderedPage, headers: Mapping[str, str]) -> Optional[str]:
    return _clean(await page.evaluate_selector("html", "lang"))


DESCRIPTION_CHAIN: Sequence[Extractor] = (
    meta_tag("description"),
    meta_tag("og:description"),
    meta_tag("twitter:description"),
)

LANGUAGE_CHAIN: Sequence[Extractor] = (
    response_header("content-language"),
    html_lang,
    meta_tag("og:locale"),
    meta_tag("docusaurus_locale"),
    meta_tag("docsearch:language"),
)

PUBLISHED_CHAIN: Sequence[Extractor] = (
    meta_tag("article:published_time"),
    meta_tag("book:release_date"),
)


async def first_present(
    chain: Sequence[Extractor],
    page: RenderedPage,
    headers: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Run *chain* in order, stop at the first extractor that yields a value."""
    hdrs = headers or {}
    for extractor in chain:
        value = await extractor(page, hdrs)
        if value is not None:
            return value
    return None


async def get_description(page: RenderedPage) -> Optional[str]:
    return await first_present(DESCRIPTION_CHAIN, page)


async def get_language(page: RenderedPage, headers: Mapping[str, str]) -> Optional[str]:
    return await first_present(LANGUAGE_CHAIN, page, headers)


async def get_published(page: RenderedPage) -> Optional[str]:
    return await first_present(PUBLISHED_CHAIN, page)


__all__ = (
    "Extractor",
    "DESCRIPTION_CHAIN",
    "LANGUAGE_CHAIN",
    "PUBLISHED_CHAIN",
    "first_present",
    "get_meta_tag",
    "meta_tag",
    "response_header",
    "html_lang",
    "get_description",
    "get_language",
    "get_published",
)
