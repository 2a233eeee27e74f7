# === FILE: site_mapper/logger.py ===
"""Логирование SiteMapper: один логгер ``SiteMapper`` на весь проект.

Кто что пишет
-------------
* краулер: старт/финиш обхода (INFO), пропущенные URL (DEBUG),
  недоступный robots.txt (WARNING);
* HTTP-сервис: отказы по лимитам и CORS (WARNING), необработанные
  ошибки с traceback (``logger.exception``); клиенту уходит только
  обобщённое ``{error, statusCode}``;
* CLI: уровень и файл берутся из ``--log-level``/``--log-file``.

Вывод идёт в stderr: ``site-mapper crawl URL > sitemap.xml`` получает в
файле только XML. Файл логов ротируется (5 МБ x 3).

    from site_mapper.logger import logger
    logger.info("Старт обхода: %s", url)
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

# --------------------------------------------------------------------------- #
# Format & name                                                               #
# --------------------------------------------------------------------------- #

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteMapper"

LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Handlers: stderr + optional rotating file                                   #
# --------------------------------------------------------------------------- #


def _stderr_handler(fmt: str) -> logging.StreamHandler:
    # bound at configure time; the CLI group reconfigures on every invocation
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_file_handler(path: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


# --------------------------------------------------------------------------- #
# Setup used by the CLI group and the test suite                              #
# --------------------------------------------------------------------------- #


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает логгер ``SiteMapper`` и возвращает его.

    ``level`` принимает число или имя (``"DEBUG"``); ``log_file`` добавляет
    файл рядом с stderr; ``replace_handlers=False`` оставляет прежние
    обработчики. Сообщения не уходят в root-логгер, поэтому логи aiohttp
    и приложения не дублируются.
    """
    project_logger = logging.getLogger(LOGGER_NAME)
    project_logger.setLevel(level)
    if replace_handlers:
        project_logger.handlers.clear()

    project_logger.addHandler(_stderr_handler(log_format))
    if log_file is not None:
        project_logger.addHandler(_rotating_file_handler(log_file, log_format))

    project_logger.propagate = False
    return project_logger


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Точка входа для ``site-mapper``: заменяет обработчики целиком."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


# Import-time default: INFO to stderr, no file.
logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
