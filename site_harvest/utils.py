# File: site_harvest/utils.py
"""site_harvest.utils: URL helpers shared by the frontier, the crawl state and the renderers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Collection, List, Mapping, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from site_harvest.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_http_url",
    "lower_headers",
    "utc_timestamp",
    "remove_duplicates",
)


def is_http_url(url: str) -> bool:
    """Absolute http(s) URL with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in ("http", "https") and bool(parsed.netloc)


def normalize_url(url: str) -> Optional[str]:
    """Canonical form used as a dedup key.

    Lower-cases scheme and host, drops the fragment and sorts query
    parameters. The path is kept as is. Returns ``None`` for anything that
    is not an absolute http(s) URL.
    """
    if not url or not is_http_url(url.strip()):
        return None
    parsed = urlparse(url.strip())
    qs = parse_qsl(parsed.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    path = parsed.path or "/"
    normalized = urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, query, "")
    )
    if normalized != url:
        logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def lower_headers(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Copy *headers* into a plain dict with lower-cased names (first value wins)."""
    out: dict[str, str] = {}
    if not headers:
        return out
    for key, value in headers.items():
        out.setdefault(str(key).lower(), str(value))
    return out


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. ``2024-05-01T10:00:00.123Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
