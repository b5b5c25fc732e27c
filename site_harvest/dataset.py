# File: site_harvest/dataset.py
"""site_harvest.dataset: append-only record sinks.

A sink only stores what it is given; deduplication happens before a record
reaches it.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Protocol, Union

from site_harvest.crawler.models import Record
from site_harvest.logger import logger

__all__ = ["RecordSink", "JsonlDataset", "MemoryDataset"]

_RECORDS_FILE = "records.jsonl"


class RecordSink(Protocol):
    def push_record(self, record: Record) -> None: ...


class MemoryDataset:
    """Keeps records in a list. Handy for tests and embedding."""

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self.records: List[Record] = []
        self._lock = threading.Lock()

    def push_record(self, record: Record) -> None:
        with self._lock:
            self.records.append(record)

    def public_urls(self) -> List[str]:
        with self._lock:
            return [r.public_url for r in self.records]

    def __len__(self) -> int:
        with self._lock:
            return len(self.records)


class JsonlDataset:
    """Named dataset stored as ``<storage_dir>/datasets/<name>/records.jsonl``."""

    def __init__(self, path: Union[str, Path], name: str = "default") -> None:
        self.path = Path(path)
        self.name = name
        self._lock = threading.Lock()
        self._count = 0

    @classmethod
    def open(cls, storage_dir: Union[str, Path], name: str) -> JsonlDataset:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid dataset name: {name!r}")
        directory = Path(storage_dir).expanduser() / "datasets" / name
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("Opened dataset %r at %s", name, directory)
        return cls(directory / _RECORDS_FILE, name=name)

    def push_record(self, record: Record) -> None:
        line = json.dumps(record.to_json(), ensure_ascii=False)
        with self._lock, self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
            self._count += 1

    @property
    def pushed(self) -> int:
        return self._count

    def iter_records(self) -> Iterator[Dict[str, Any]]:
        """Read back everything stored so far, oldest first."""
        if not self.path.exists():
            return
        with self.path.open(encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield json.loads(line)
