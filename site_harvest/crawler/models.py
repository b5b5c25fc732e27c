# site_harvest/crawler/models.py
"""
Data models for the SiteHarvest crawler: requests and the records pushed to a dataset.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from site_harvest.utils import normalize_url, utc_timestamp


@dataclass(slots=True)
class CrawlRequest:
    """One unit of crawl work.

    ``original_url`` is the URL as it was enqueued and stays the identity of
    whatever record the request produces. ``loaded_url`` is filled in once the
    renderer has followed redirects.
    """

    original_url: str
    depth: int = 0
    loaded_url: Optional[str] = None
    no_retry: bool = False
    retry_count: int = 0

    @property
    def unique_key(self) -> str:
        return normalize_url(self.original_url) or self.original_url

    @property
    def redirected(self) -> bool:
        return self.loaded_url is not None and self.loaded_url != self.original_url


def _drop_absent(payload: Dict[str, Any], optional: tuple[str, ...]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if not (k in optional and v is None)}


@dataclass(slots=True)
class PageRecord:
    """Metadata and markup of a page the renderer opened successfully."""

    public_url: str
    title: str
    mime_type: Optional[str]
    content: str
    description: Optional[str] = None
    language: Optional[str] = None
    published: Optional[str] = None
    content_length: Optional[int] = None
    timestamp: str = field(default_factory=utc_timestamp)
    encoding: None = None

    def to_json(self) -> Dict[str, Any]:
        return _drop_absent(
            {
                "public_url": self.public_url,
                "title": self.title,
                "description": self.description,
                "language": self.language,
                "published": self.published,
                "mime_type": self.mime_type,
                "content_length": self.content_length,
                "content": self.content,
                "timestamp": self.timestamp,
                "encoding": self.encoding,
            },
            ("description", "language", "published", "content_length"),
        )


@dataclass(slots=True)
class FileRecord:
    """Raw document downloaded after the renderer gave up on it."""

    public_url: str
    mime_type: str
    content: Optional[str] = None
    content_length: Optional[int] = None
    encoding: str = "base64"
    timestamp: str = field(default_factory=utc_timestamp)

    def to_json(self) -> Dict[str, Any]:
        return _drop_absent(
            {
                "public_url": self.public_url,
                "content": self.content,
                "mime_type": self.mime_type,
                "content_length": self.content_length,
                "encoding": self.encoding,
                "timestamp": self.timestamp,
            },
            ("content", "content_length"),
        )


Record = Union[PageRecord, FileRecord]


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """``content-length`` header as int, ``None`` when missing or garbage."""
    if value is None:
        return None
    try:
        length = int(str(value).strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def strip_mime_params(content_type: Optional[str]) -> Optional[str]:
    """``text/html; charset=utf-8`` -> ``text/html``."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip() or None


__all__ = (
    "CrawlRequest",
    "PageRecord",
    "FileRecord",
    "Record",
    "parse_content_length",
    "strip_mime_params",
)
