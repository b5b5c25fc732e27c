"""site_harvest.report: сохранение сводки обхода в JSON и HTML, используется CLI и тестами."""

from __future__ import annotations

from site_harvest.report.html_report import render_html
from site_harvest.report.json_report import render_json

__all__ = ["render_json", "render_html"]
