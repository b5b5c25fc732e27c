# === FILE: site_harvest/config.py ===
"""
Загрузка и валидация конфигурации краулера SiteHarvest.

Pydantic describes the schema. Keys may be written in snake_case or in the
camelCase used by actor-style inputs (``startUrls``, ``maxCrawlDepth``, ...).
"""
from __future__ import annotations

import errno
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from site_harvest.crawler.globs import GlobFilter
from site_harvest.utils import is_http_url


def _unwrap(items: Any, key: str) -> Any:
    """Accept ``["a", {"<key>": "b"}]`` as well as plain string lists."""
    if items is None:
        return []
    if isinstance(items, (str, dict)):
        items = [items]
    if not isinstance(items, list):
        return items
    return [item.get(key) if isinstance(item, dict) else item for item in items]


class CrawlerConfig(BaseModel):
    """Конфигурация одного запуска краулера."""
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    start_urls: List[str] = Field(..., min_length=1, description="Seed URLs.")
    dataset_name: str = Field("default", min_length=1, description="Target dataset name.")
    max_crawl_depth: int = Field(
        1, ge=0, description="Depth as users count it: 1 means only the start URLs."
    )
    max_crawl_pages: int = Field(100, ge=1, description="Total record budget.")
    include_glob_patterns: List[str] = Field(default_factory=list, description="Links to follow.")
    exclude_glob_patterns: List[str] = Field(default_factory=list, description="Links never to follow.")

    min_concurrency: int = Field(4, ge=1, description="Number of parallel workers.")
    max_request_retries: int = Field(3, ge=0, description="Render retries per request.")
    renderer: Literal["playwright", "http"] = Field("playwright", description="Render backend.")
    navigation_timeout: float = Field(60.0, gt=0, description="Render timeout (seconds).")
    headless: bool = Field(True, description="Run the browser headless.")
    timeout: float = Field(30.0, gt=0, description="Raw download timeout (seconds).")
    retry_times: int = Field(2, ge=0, description="Raw download retries on 429/5xx.")
    user_agent: str = Field("SiteHarvestBot/1.0", min_length=1, description="User-Agent header.")
    storage_dir: Path = Field(Path("storage"), description="Root directory of datasets.")

    @field_validator("start_urls", mode="before")
    def _unwrap_start_urls(cls, v: Any) -> Any:
        return _unwrap(v, "url")

    @field_validator("include_glob_patterns", "exclude_glob_patterns", mode="before")
    def _unwrap_globs(cls, v: Any) -> Any:
        return _unwrap(v, "glob")

    @field_validator("start_urls")
    def _check_start_urls(cls, v: List[str]) -> List[str]:
        urls = [u.strip() for u in v]
        bad = [u for u in urls if not is_http_url(u)]
        if bad:
            raise ValueError(f"start URLs must be absolute http(s) URLs: {bad}")
        return urls

    @field_validator("include_glob_patterns", "exclude_glob_patterns")
    def _check_globs(cls, v: List[str]) -> List[str]:
        patterns = [p.strip() for p in v]
        # GlobPatternError is a ValueError, so pydantic reports it as a field error
        GlobFilter.compile(patterns or ["**"], patterns)
        return patterns

    @property
    def depth_budget(self) -> int:
        """Hops allowed beyond the start URLs (``max_crawl_depth`` minus one, floored at 0)."""
        return max(self.max_crawl_depth - 1, 0)


DEFAULT_CONFIG_PATH = Path("configs") / "default.yaml"


def _parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML: {exc}") from exc


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc


_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
    ".json": _parse_json,
}


def read_config_file(path: Path) -> Dict[str, Any]:
    """Сырые данные конфига: словарь верхнего уровня из YAML или JSON."""
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ValueError(f"Unsupported config format {path.suffix!r}; use one of {sorted(_PARSERS)}")
    data = parser(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"{path.name}: top level must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный CrawlerConfig.

    Без *path* берётся ``configs/default.yaml`` относительно текущего каталога.
    Отсутствующий файл: FileNotFoundError; битый файл: ValueError/TypeError;
    нарушение схемы: pydantic.ValidationError.
    """
    source = DEFAULT_CONFIG_PATH if path is None else Path(path).expanduser()
    if not source.is_file():
        raise FileNotFoundError(errno.ENOENT, "config file not found", str(source))
    return CrawlerConfig.model_validate(read_config_file(source))


__all__ = ["CrawlerConfig", "DEFAULT_CONFIG_PATH", "ValidationError", "load_config", "read_config_file"]
