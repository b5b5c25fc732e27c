"""site_harvest.report.html_report: HTML-сводка обхода через Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_harvest.aggregator import CrawlSummary

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "summary.html.j2"


def _environment(template_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_html(
    summary: CrawlSummary,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит ``summary.html.j2`` и пишет результат в *output_path*.

    Args:
        summary: итоги обхода.
        template_dir: каталог со своим ``summary.html.j2``; ``None`` означает
            шаблон из пакета.
        output_path: куда сохранить HTML.

    Returns:
        Путь к сохранённому файлу.
    """
    source = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    template = _environment(source).get_template(TEMPLATE_NAME)
    target.write_text(
        template.render(summary=summary, state=summary.state, frontier=summary.frontier),
        encoding="utf-8",
    )
    return target


__all__ = ["render_html", "DEFAULT_TEMPLATE_DIR", "TEMPLATE_NAME"]
