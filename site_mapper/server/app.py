# === FILE: site_mapper/server/app.py ===
"""
HTTP API генератора sitemap на ``aiohttp.web``.

Маршруты:
  GET  /                      health-check (без лимитов)
  POST /api/generate-sitemap  JSON {sitemapXML, stats, debug?}
  POST /api/download-sitemap  sitemap.xml как вложение, статистика в X-* заголовках

Цепочка middleware (снаружи внутрь): заголовки безопасности → ошибки →
CORS → общий лимит (100/15 мин) → лимит sitemap-эндпоинтов (20/15 мин).
"""
from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web
from pydantic import ValidationError

from site_mapper import __version__
from site_mapper.config import AppConfig
from site_mapper.crawler.models import CrawlRequest
from site_mapper.engine import SitemapBuild, build_sitemap
from site_mapper.logger import logger
from site_mapper.server.security import (
    FixedWindowRateLimiter,
    OriginPolicy,
    cors_middleware,
    error_middleware,
    error_response,
    rate_limit_middleware,
    sanitize,
    security_headers_middleware,
)
from site_mapper.server.validation import SitemapRequest, format_validation_error

__all__ = ["create_app", "run_server", "CONFIG_KEY", "SITEMAP_PATHS"]

CONFIG_KEY = web.AppKey("config", AppConfig)
GLOBAL_LIMITER_KEY = web.AppKey("global_limiter", FixedWindowRateLimiter)
SITEMAP_LIMITER_KEY = web.AppKey("sitemap_limiter", FixedWindowRateLimiter)

SITEMAP_PATHS = frozenset({"/api/generate-sitemap", "/api/download-sitemap"})
SERVICE_NAME = "Sitemap Generator API"


class RequestError(Exception):
    """Тело запроса не прошло проверку; сообщение уходит клиенту как есть."""


async def _read_request(request: web.Request) -> SitemapRequest:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestError("Invalid request format") from None
    config = request.app[CONFIG_KEY]
    try:
        return SitemapRequest.model_validate(
            sanitize(data),
            context={"allow_private_hosts": config.server.allow_private_hosts},
        )
    except ValidationError as exc:
        raise RequestError(format_validation_error(exc)) from None


async def _build(request: web.Request, payload: SitemapRequest, *, include_debug: bool) -> SitemapBuild:
    config = request.app[CONFIG_KEY]
    crawl_request = CrawlRequest(
        seed_url=payload.url,
        max_pages=config.crawl.max_pages,
        request_timeout=config.crawl.request_timeout,
        include_debug=include_debug,
    )
    return await build_sitemap(
        crawl_request,
        payload.sitemap_options(),
        settings=config.crawl,
        timeout=config.server.crawl_timeout,
    )


def _bad_request(message: str) -> web.Response:
    return web.json_response({"error": message, "statusCode": 400}, status=400)


async def health(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


async def generate_sitemap(request: web.Request) -> web.Response:
    try:
        payload = await _read_request(request)
    except RequestError as exc:
        return _bad_request(str(exc))
    try:
        build = await _build(request, payload, include_debug=payload.include_debug)
    except asyncio.TimeoutError:
        return error_response(504)
    return web.json_response(build.payload(include_debug=payload.include_debug))


async def download_sitemap(request: web.Request) -> web.Response:
    try:
        payload = await _read_request(request)
    except RequestError as exc:
        return _bad_request(str(exc))
    try:
        build = await _build(request, payload, include_debug=False)
    except asyncio.TimeoutError:
        return error_response(504)
    stats = build.crawl.stats
    return web.Response(
        text=build.xml,
        content_type="application/xml",
        charset="utf-8",
        headers={
            "Content-Disposition": 'attachment; filename="sitemap.xml"',
            "X-Urls-Discovered": str(stats.urls_discovered),
            "X-Urls-In-Sitemap": str(stats.urls_in_sitemap),
            "X-Crawl-Time-Seconds": str(stats.crawl_time_seconds),
        },
    )


def _is_health_check(request: web.Request) -> bool:
    return request.method == "GET" and request.path == "/"


def create_app(config: Optional[AppConfig] = None) -> web.Application:
    """Собирает приложение; лимиты и CORS-политика создаются заново на каждый вызов."""
    config = config or AppConfig()
    limits = config.rate_limit
    global_limiter = FixedWindowRateLimiter(limits.global_max, limits.window_seconds)
    sitemap_limiter = FixedWindowRateLimiter(limits.sitemap_max, limits.window_seconds)
    origins = OriginPolicy(config.server.allowed_origins, config.server.preview_origin_pattern)

    app = web.Application(
        middlewares=[
            security_headers_middleware,
            error_middleware,
            cors_middleware(origins),
            rate_limit_middleware(
                global_limiter,
                applies=lambda request: not _is_health_check(request),
                error="Too many requests",
            ),
            rate_limit_middleware(
                sitemap_limiter,
                applies=lambda request: request.path in SITEMAP_PATHS,
                error="Rate limit exceeded for sitemap generation",
                message="Sitemap generation is resource-intensive. Please wait before trying again.",
            ),
        ]
    )
    app[CONFIG_KEY] = config
    app[GLOBAL_LIMITER_KEY] = global_limiter
    app[SITEMAP_LIMITER_KEY] = sitemap_limiter

    app.router.add_get("/", health)
    app.router.add_post("/api/generate-sitemap", generate_sitemap)
    app.router.add_post("/api/download-sitemap", download_sitemap)
    return app


def run_server(config: Optional[AppConfig] = None) -> None:
    """Запускает сервис и блокирует до остановки."""
    config = config or AppConfig()
    logger.info(
        "%s listening on %s:%d (origins: %s)",
        SERVICE_NAME,
        config.server.host,
        config.server.port,
        ", ".join(config.server.allowed_origins) or "-",
    )
    web.run_app(create_app(config), host=config.server.host, port=config.server.port, print=None)
