#!/usr/bin/env python3
"""
Командная строка SiteHarvest.

    site-harvest [--config PATH] [--limit N] [--log-level LEVEL] crawl [--json PATH] [--html PATH]
    site-harvest --config configs/docs.yaml config --camel

``crawl`` печатает JSON-сводку в stdout, если не задан ни ``--json``, ни
``--html``; логи идут в stderr (и в ``--log-file``, если он указан).
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Callable, NoReturn, Optional

import click
from jinja2 import TemplateError

from site_harvest import __version__
from site_harvest.aggregator import CrawlSummary
from site_harvest.config import CrawlerConfig, load_config
from site_harvest.logger import DEFAULT_FORMAT, init_logging
from site_harvest.report.html_report import render_html
from site_harvest.report.json_report import render_json
from site_harvest.scanner import start_crawl

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_OUTPUT_FILE = click.Path(writable=True, dir_okay=False, path_type=Path)


def fail(message: str) -> NoReturn:
    """Печатает ошибку красным в stderr и завершает процесс с кодом 1."""
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def run_crawl(cfg: CrawlerConfig, timeout: Optional[float] = None) -> CrawlSummary:
    """Запускает обход в новом event loop; *timeout* ограничивает весь обход."""
    coro = start_crawl(cfg)
    if timeout:
        coro = asyncio.wait_for(coro, timeout=timeout)
    return asyncio.run(coro)


def _save(kind: str, write: Callable[[], Path]) -> None:
    try:
        path = write()
    except (OSError, TemplateError) as exc:
        fail(f"Ошибка при сохранении {kind}: {exc}")
    click.echo(f"{kind} report: {path}")


@click.group()
@click.version_option(__version__, "--version", "-v", prog_name="SiteHarvest", message="%(prog)s, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default="configs/default.yaml",
    show_default=True,
    help="Конфигурация обхода (YAML или JSON).",
)
@click.option("--limit", "-l", type=click.IntRange(min=1), help="Переопределить max_crawl_pages.")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Уровень логирования.",
)
@click.option("--log-file", type=_OUTPUT_FILE, help="Дублировать логи в файл (с ротацией).")
@click.option("--log-format", default=DEFAULT_FORMAT, show_default=True, help="Формат строки лога.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path,
    limit: Optional[int],
    log_level: str,
    log_file: Optional[Path],
    log_format: str,
) -> None:
    """SiteHarvest: обход сайта и сбор страниц и документов в датасет."""
    init_logging(level=log_level, log_file=log_file, log_format=log_format, stream=sys.stderr)
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError) as exc:
        # pydantic.ValidationError is a ValueError
        fail(f"Ошибка загрузки конфигурации: {exc}")
    if limit is not None:
        cfg = cfg.model_copy(update={"max_crawl_pages": limit})
    ctx.obj = {"config": cfg}


@cli.command("crawl")
@click.option("--json", "-j", "json_path", type=_OUTPUT_FILE, help="Сохранить сводку в JSON-файл.")
@click.option("--html", "-h", "html_path", type=_OUTPUT_FILE, help="Сохранить сводку в HTML-файл.")
@click.option(
    "--template", "-t", "template_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Каталог со своим summary.html.j2 (по умолчанию встроенный шаблон).",
)
@click.option("--pretty", is_flag=True, help="JSON с отступом 2.")
@click.option(
    "--crawl-timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Ограничение времени всего обхода, секунд.",
)
@click.pass_obj
def crawl(
    obj: dict,
    json_path: Optional[Path],
    html_path: Optional[Path],
    template_dir: Optional[Path],
    pretty: bool,
    crawl_timeout: Optional[float],
) -> None:
    """Обойти сайт и напечатать или сохранить сводку."""
    try:
        summary = run_crawl(obj["config"], crawl_timeout)
    except asyncio.TimeoutError:
        fail(f"Обход не завершён за {crawl_timeout} секунд")
    except Exception as exc:
        fail(f"Ошибка при обходе: {exc}")

    if json_path is None and html_path is None:
        click.echo(summary.json(pretty=pretty))
        return
    if json_path is not None:
        _save("JSON", lambda: render_json(summary, json_path, pretty=pretty))
    if html_path is not None:
        _save("HTML", lambda: render_html(summary, template_dir, html_path))


@cli.command("config")
@click.option("--camel", is_flag=True, help="Ключи в camelCase (startUrls, maxCrawlDepth, ...).")
@click.pass_obj
def show_config(obj: dict, camel: bool) -> None:
    """Показать проверенную конфигурацию в JSON."""
    click.echo(obj["config"].model_dump_json(indent=2, by_alias=camel))


if __name__ == "__main__":
    cli()
