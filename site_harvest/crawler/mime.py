# site_harvest/crawler/mime.py
"""
MIME type inference for downloaded files.

File hosting sites often label everything ``application/octet-stream``; in
that case the type is guessed from the intended filename.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote, urlparse

from site_harvest.crawler.models import strip_mime_params
from site_harvest.logger import logger

__all__ = (
    "DOWNLOAD_FILE_EXTENSIONS",
    "EXTENSION_MIME_TYPES",
    "GENERIC_MIME_TYPE",
    "is_downloadable",
    "filename_from_content_disposition",
    "file_extension",
    "infer_mime_type",
)

GENERIC_MIME_TYPE = "application/octet-stream"

# Document types worth a raw download when the renderer cannot open them.
DOWNLOAD_FILE_EXTENSIONS: Tuple[str, ...] = ("pdf", "doc", "docx", "epub", "ppt", "pptx", "txt", "md")

EXTENSION_MIME_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "pdf": "application/pdf",
        "doc": "application/msword",
        "docx": "application/msword",
        "xls": "application/vnd.ms-excel",
        "xlsx": "application/vnd.ms-excel",
        "ppt": "application/vnd.ms-powerpoint",
        "pptx": "application/vnd.ms-powerpoint",
        "txt": "text/plain",
        "csv": "text/csv",
        "html": "text/html",
        "md": "text/markdown",
        "json": "application/json",
        "epub": "application/epub+zip",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "png": "image/png",
        "gif": "image/gif",
        "bmp": "image/bmp",
        "svg": "image/svg+xml",
        "zip": "application/zip",
        "rar": "application/x-rar-compressed",
    }
)

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)


def is_downloadable(url: str) -> bool:
    """True if the URL path ends in a whitelisted document extension."""
    last_segment = urlparse(url).path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return False
    return file_extension(last_segment) in DOWNLOAD_FILE_EXTENSIONS


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """``attachment; filename="report.pdf"`` -> ``report.pdf``."""
    if not header:
        return None
    match = _FILENAME_RE.search(header)
    if not match:
        return None
    filename = unquote(match.group(1).strip())
    return filename or None


def file_extension(filename: str) -> str:
    """Lower-cased text after the last dot (the whole string if there is none)."""
    return filename.rsplit(".", 1)[-1].lower()


def infer_mime_type(headers: Mapping[str, str], url: str) -> str:
    """Pick the MIME type of a raw download from its headers, falling back to the filename."""
    content_type = headers.get("content-type")
    declared = strip_mime_params(content_type)
    if declared and declared.lower() != GENERIC_MIME_TYPE:
        return declared

    content_disposition = headers.get("content-disposition")
    filename = filename_from_content_disposition(content_disposition) or str(url)
    extension = file_extension(filename)
    mime_type = EXTENSION_MIME_TYPES.get(extension)
    if mime_type is None:
        logger.info(
            "Failed to determine mime_type for %s. contentType=%s, contentDisposition=%s, "
            "filename=%s, extension=%s",
            url,
            content_type,
            content_disposition,
            filename,
            extension,
        )
        return GENERIC_MIME_TYPE
    return mime_type
