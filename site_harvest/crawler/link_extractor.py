# site_harvest/crawler/link_extractor.py
"""
Link discovery on rendered markup.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_harvest.utils import remove_duplicates

_SKIP_PREFIXES = ("mailto:", "javascript:", "tel:", "data:", "#")


def extract_links(markup: str, base_url: str) -> List[str]:
    """
    Extract absolute HTTP(S) links from ``<a href>`` and ``<area href>`` tags.

    Any host is accepted; scoping is the glob filter's job. Relative links
    resolve against ``<base href>`` when present, else *base_url*. Fragments
    are dropped and document order is kept, without duplicates.
    """
    soup = BeautifulSoup(markup, "html.parser")
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag) and isinstance(base_tag.get("href"), str):
        base_url = urljoin(base_url, base_tag["href"].strip())  # type: ignore[index,union-attr]

    links: List[str] = []
    for tag in soup.find_all(["a", "area"], href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.lower().startswith(_SKIP_PREFIXES):
            continue
        absolute, _ = urldefrag(urljoin(base_url, raw))
        parsed = urlparse(absolute)
        if parsed.scheme in ("http", "https") and parsed.netloc:
            links.append(absolute)
    return remove_duplicates(links)


__all__ = ("extract_links",)
