"""Logging setup for **SiteHarvest**.

Every module logs through one named logger::

    from site_harvest.logger import logger
    logger.info("Crawled %s", url)

:func:`configure` rebuilds its handlers: one stream handler (stdout unless
told otherwise) and, optionally, a size-rotated log file. The CLI points the
stream at stderr so that ``crawl`` can print its JSON summary on stdout.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteHarvest"

_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_BACKUPS: Final[int] = 3

Level = Union[int, str]


def _resolve_level(level: Level) -> int:
    """``"debug"``, ``"DEBUG"`` and ``10`` all mean the same thing."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _build_handlers(
    fmt: str,
    stream: Optional[TextIO],
    log_file: Union[str, Path, None],
) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(path, maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: Level = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the project logger and return it.

    Parameters
    ----------
    level
        Level name in any case, or a numeric level.
    log_file
        Extra rotating log file; parent directories are created.
    log_format
        :class:`logging.Formatter` format string for every handler.
    stream
        Console stream, ``sys.stdout`` when omitted.
    replace_handlers
        Close and drop the handlers installed by an earlier call.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(_resolve_level(level))
    if replace_handlers:
        for old in list(lg.handlers):
            lg.removeHandler(old)
            old.close()
    for handler in _build_handlers(log_format, stream, log_file):
        lg.addHandler(handler)
    lg.propagate = False
    return lg


def init_logging(
    level: Level = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Shortcut used by the CLI and tests."""
    return configure(level=level, log_file=log_file, log_format=log_format, stream=stream)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
