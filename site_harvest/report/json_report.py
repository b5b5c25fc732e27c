# site_harvest/report/json_report.py
"""JSON-сводка обхода: то же, что ``crawl`` печатает в stdout, но в файл."""
from __future__ import annotations

from pathlib import Path
from typing import Union

from site_harvest.aggregator import CrawlSummary


def render_json(summary: CrawlSummary, output_path: Union[Path, str], *, pretty: bool = True) -> Path:
    """
    Записывает *summary* в *output_path* (UTF-8, родительские каталоги создаются).

    >>> render_json(summary, "reports/docs.json")  # doctest: +SKIP
    PosixPath('reports/docs.json')
    """
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(summary.json(pretty=pretty) + "\n", encoding="utf-8")
    return target


__all__ = ["render_json"]
