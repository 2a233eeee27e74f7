# === FILE: site_mapper/config.py ===
"""
Модуль для загрузки и валидации конфигурации SiteMapper.
Используется Pydantic для описания схемы и проверки данных.

Конфиг состоит из трёх секций: ``crawl`` (параметры обхода), ``rate_limit``
(лимиты HTTP-сервиса) и ``server`` (адрес, CORS, общий таймаут обхода).
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

__all__ = [
    "AppConfig",
    "CrawlSettings",
    "RateLimitSettings",
    "ServerSettings",
    "load_config",
    "apply_env_overrides",
    "DEFAULT_USER_AGENT",
]

DEFAULT_USER_AGENT = "Sitemap-Generator/1.0 (+https://example.com)"


class CrawlSettings(BaseModel):
    """Параметры одного обхода сайта."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(50, ge=1, description="Жесткий лимит страниц в sitemap.")
    request_timeout: float = Field(5.0, gt=0, description="Таймаут на один запрос (секунд).")
    robots_timeout: float = Field(3.0, gt=0, description="Таймаут загрузки robots.txt (секунд).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    robots_agent: str = Field(
        "sitemap-generator",
        min_length=1,
        description="Имя группы User-agent в robots.txt, правила которой объединяются с '*'.",
    )

    @field_validator("robots_agent")
    def _lower_agent(cls, v: str) -> str:
        return v.strip().lower()


class RateLimitSettings(BaseModel):
    """Лимиты запросов на один IP в окне ``window_seconds``."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    window_seconds: float = Field(15 * 60, gt=0)
    global_max: int = Field(100, ge=1, description="Все эндпоинты, кроме health-check.")
    sitemap_max: int = Field(20, ge=1, description="Эндпоинты генерации sitemap.")


class ServerSettings(BaseModel):
    """Настройки HTTP-сервиса."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(3000, ge=0, le=65535)
    allowed_origins: List[str] = Field(default_factory=list)
    preview_origin_pattern: Optional[str] = Field(
        r"^https://[a-z0-9-]+\.vercel\.app$",
        description="Регулярное выражение для preview-деплоев; None отключает.",
    )
    crawl_timeout: float = Field(120.0, gt=0, description="Таймаут всей операции обхода (секунд).")
    allow_private_hosts: bool = Field(
        False, description="Разрешить обход localhost/приватных адресов (только для разработки)."
    )

    @field_validator("allowed_origins", mode="before")
    def _split_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("preview_origin_pattern")
    def _check_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as exc:
                raise ValueError(f"invalid regular expression: {exc}") from exc
        return v


class AppConfig(BaseModel):
    """Полная конфигурация приложения."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    crawl: CrawlSettings = Field(default_factory=CrawlSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AppConfig.
    Без пути использует configs/default.yaml, а если его нет, значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return AppConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return AppConfig(**data)


def apply_env_overrides(config: AppConfig, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Накладывает переменные окружения PORT и ALLOWED_ORIGINS на секцию server."""
    env = os.environ if environ is None else environ
    update: Dict[str, Any] = {}
    if env.get("PORT"):
        update["port"] = env["PORT"]
    if env.get("ALLOWED_ORIGINS") is not None:
        update["allowed_origins"] = env["ALLOWED_ORIGINS"]
    if not update:
        return config
    # model_copy(update=...) skips validation, so rebuild the section
    server = ServerSettings(**{**config.server.model_dump(), **update})
    return config.model_copy(update={"server": server})
