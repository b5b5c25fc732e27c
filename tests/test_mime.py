# File: tests/test_mime.py
import pytest

from site_harvest.crawler.mime import (
    GENERIC_MIME_TYPE,
    file_extension,
    filename_from_content_disposition,
    infer_mime_type,
    is_downloadable,
)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com/files/report.pdf", True),
        ("https://example.com/files/REPORT.PDF", True),
        ("https://example.com/files/notes.md?download=1", True),
        ("https://example.com/slides.pptx", True),
        ("https://example.com/image.jpg", False),
        ("https://example.com/archive.zip", False),
        ("https://example.com/pdf", False),
        ("https://example.com/docs.pdf/intro", False),
        ("https://example.com/", False),
    ],
)
def test_is_downloadable(url, expected):
    assert is_downloadable(url) is expected


def test_declared_content_type_wins():
    headers = {"content-type": "application/pdf; charset=binary"}
    assert infer_mime_type(headers, "https://example.com/x.docx") == "application/pdf"


def test_octet_stream_resolved_from_content_disposition():
    headers = {
        "content-type": "application/octet-stream",
        "content-disposition": 'attachment; filename="Quarterly%20Report.PDF"',
    }
    assert infer_mime_type(headers, "https://example.com/download?id=7") == "application/pdf"


def test_missing_content_type_uses_url_extension():
    assert infer_mime_type({}, "https://example.com/a/b.docx") == "application/msword"
    assert infer_mime_type({}, "https://example.com/readme.md") == "text/markdown"


def test_unknown_extension_is_generic():
    assert infer_mime_type({}, "https://x.com/file") == GENERIC_MIME_TYPE
    headers = {"content-type": "application/octet-stream", "content-disposition": "attachment"}
    assert infer_mime_type(headers, "https://x.com/blob.xyz") == GENERIC_MIME_TYPE


@pytest.mark.parametrize(
    "header,expected",
    [
        ('attachment; filename="report.pdf"', "report.pdf"),
        ("attachment; filename=report.pdf", "report.pdf"),
        ('inline; filename="my%20notes.txt"; size=10', "my notes.txt"),
        ("attachment", None),
        (None, None),
    ],
)
def test_filename_from_content_disposition(header, expected):
    assert filename_from_content_disposition(header) == expected


def test_file_extension_is_lowercased():
    assert file_extension("Report.Final.PDF") == "pdf"
