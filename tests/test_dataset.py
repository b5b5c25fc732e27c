# File: tests/test_dataset.py
import pytest

from site_harvest.crawler.models import FileRecord, PageRecord
from site_harvest.dataset import JsonlDataset, MemoryDataset


def test_jsonl_dataset_appends_records(tmp_path):
    ds = JsonlDataset.open(tmp_path, "docs")
    ds.push_record(
        PageRecord(
            public_url="https://example.com/",
            title="Главная",
            mime_type="text/html",
            content="<html></html>",
            language="ru",
        )
    )
    ds.push_record(FileRecord(public_url="https://example.com/a.pdf", mime_type="application/pdf", content="JVBERg=="))

    assert ds.path == tmp_path / "datasets" / "docs" / "records.jsonl"
    assert ds.pushed == 2
    page, file = list(ds.iter_records())
    assert page["title"] == "Главная"
    assert page["encoding"] is None
    assert "description" not in page
    assert file["encoding"] == "base64"
    assert file["mime_type"] == "application/pdf"


def test_reopening_dataset_keeps_earlier_records(tmp_path):
    JsonlDataset.open(tmp_path, "docs").push_record(
        FileRecord(public_url="https://example.com/a.txt", mime_type="text/plain", content="aGk=")
    )
    again = JsonlDataset.open(tmp_path, "docs")
    assert [r["public_url"] for r in again.iter_records()] == ["https://example.com/a.txt"]


def test_empty_dataset_reads_nothing(tmp_path):
    assert list(JsonlDataset.open(tmp_path, "empty").iter_records()) == []


@pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b"])
def test_invalid_dataset_names(tmp_path, name):
    with pytest.raises(ValueError):
        JsonlDataset.open(tmp_path, name)


def test_memory_dataset():
    ds = MemoryDataset("mem")
    ds.push_record(PageRecord(public_url="https://example.com/", title="", mime_type=None, content=""))
    assert len(ds) == 1
    assert ds.public_urls() == ["https://example.com/"]
