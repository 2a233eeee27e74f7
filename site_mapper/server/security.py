# File: site_mapper/server/security.py
"""
Middleware HTTP-сервиса: лимиты запросов, заголовки безопасности, CORS,
очистка тела запроса и обобщённые ответы об ошибках.

Все middleware: обычные ``@web.middleware`` корутины aiohttp; состояние
(счётчики лимитов) живёт в объектах, созданных вместе с приложением.
"""
from __future__ import annotations

import math
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from aiohttp import web

from site_mapper.logger import logger

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "OriginPolicy",
    "SECURITY_HEADERS",
    "error_body",
    "error_response",
    "sanitize",
    "client_key",
    "rate_limit_middleware",
    "security_headers_middleware",
    "cors_middleware",
    "error_middleware",
]

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self'; style-src 'self'; "
        "img-src 'self' data: https:; connect-src 'self'"
    ),
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

_ERROR_MESSAGES: Dict[int, str] = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
    422: "Unprocessable entity",
    429: "Rate limit exceeded",
    500: "Internal server error",
    503: "Service unavailable",
    504: "Gateway timeout",
}

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f]")


# --------------------------------------------------------------------------- #
# Error bodies                                                                #
# --------------------------------------------------------------------------- #


def error_body(status: int) -> Dict[str, Any]:
    """Generic ``{error, statusCode}`` pair; unknown codes collapse to 500."""
    if status not in _ERROR_MESSAGES:
        return {"error": "An error occurred", "statusCode": 500}
    return {"error": _ERROR_MESSAGES[status], "statusCode": status}


def error_response(status: int) -> web.Response:
    body = error_body(status)
    return web.json_response(body, status=body["statusCode"])


# --------------------------------------------------------------------------- #
# Sanitizing                                                                  #
# --------------------------------------------------------------------------- #


def sanitize(value: Any) -> Any:
    """Recursively strip control characters (``\\x00``-``\\x1f``) from strings."""
    if isinstance(value, str):
        return _CONTROL_CHARS_RE.sub("", value)
    if isinstance(value, list):
        return [sanitize(v) for v in value]
    if isinstance(value, dict):
        return {k: sanitize(v) for k, v in value.items()}
    return value


# --------------------------------------------------------------------------- #
# Rate limiting                                                               #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    def reset_in(self, now: float) -> int:
        return max(0, math.ceil(self.reset_at - now))


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    Счётчик запросов на ключ (IP) в фиксированном окне.

    Все операции синхронные и выполняются в одном event loop без ``await``,
    поэтому конкурентные запросы не гонятся за один счётчик.
    """

    def __init__(self, limit: int, window_seconds: float, *, clock: Callable[[], float] = time.time) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self.window = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._last_sweep = clock()

    def now(self) -> float:
        return self._clock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        self._sweep(now)
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            window = _Window(0, now + self.window)
            self._windows[key] = window
        window.count += 1
        return RateLimitDecision(
            allowed=window.count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - window.count),
            reset_at=window.reset_at,
        )

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window:
            return
        self._last_sweep = now
        for key in [k for k, w in self._windows.items() if now >= w.reset_at]:
            del self._windows[key]


def client_key(request: web.Request) -> str:
    return request.remote or "unknown"


def _rate_limit_headers(headers: Any, decision: RateLimitDecision, now: float) -> None:
    headers["RateLimit-Limit"] = str(decision.limit)
    headers["RateLimit-Remaining"] = str(decision.remaining)
    headers["RateLimit-Reset"] = str(decision.reset_in(now))


def rate_limit_middleware(
    limiter: FixedWindowRateLimiter,
    *,
    applies: Callable[[web.Request], bool] = lambda request: True,
    error: str = "Too many requests",
    message: Optional[str] = None,
):
    """Build a middleware that answers 429 once *limiter* refuses the caller."""

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if not applies(request):
            return await handler(request)
        decision = limiter.hit(client_key(request))
        now = limiter.now()
        if not decision.allowed:
            logger.warning("Rate limit: %s %s от %s", request.method, request.path, client_key(request))
            body: Dict[str, Any] = {
                "error": error,
                "retryAfter": datetime.fromtimestamp(decision.reset_at, tz=timezone.utc).isoformat(),
            }
            if message:
                body["message"] = message
            response = web.json_response(body, status=429)
            response.headers["Retry-After"] = str(decision.reset_in(now))
            _rate_limit_headers(response.headers, decision, now)
            return response
        response = await handler(request)
        # an inner, narrower limiter has already reported its own counters
        if not response.prepared and "RateLimit-Limit" not in response.headers:
            _rate_limit_headers(response.headers, decision, now)
        return response

    return middleware


# --------------------------------------------------------------------------- #
# Headers / CORS / errors                                                     #
# --------------------------------------------------------------------------- #


@web.middleware
async def security_headers_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    response = await handler(request)
    if not response.prepared:
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


class OriginPolicy:
    """Явный список origin-ов плюс шаблон для preview-деплоев."""

    def __init__(self, allowed: Iterable[str], pattern: Optional[str] = None) -> None:
        self.allowed = frozenset(o.rstrip("/") for o in allowed)
        self.pattern = re.compile(pattern, re.IGNORECASE) if pattern else None

    def __call__(self, origin: Optional[str]) -> bool:
        # no Origin header: curl or server-to-server
        if not origin:
            return True
        if origin.rstrip("/") in self.allowed:
            return True
        return bool(self.pattern and self.pattern.match(origin))


def cors_middleware(policy: OriginPolicy):
    """Build a CORS middleware; preflight ``OPTIONS`` requests are answered here."""

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        origin = request.headers.get("Origin")
        if not policy(origin):
            logger.warning("CORS: origin %s отклонён", origin)
            return error_response(403)
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        else:
            response = await handler(request)
        if origin and not response.prepared:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Expose-Headers"] = (
                "X-Urls-Discovered, X-Urls-In-Sitemap, X-Crawl-Time-Seconds, Content-Disposition"
            )
            response.headers["Vary"] = "Origin"
        return response

    return middleware


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Log failures in full, answer with a generic ``{error, statusCode}`` body."""
    try:
        return await handler(request)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        return error_response(exc.status)
    except Exception:
        logger.exception("Ошибка обработки %s %s", request.method, request.path)
        return error_response(500)
