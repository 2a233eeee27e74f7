# site_mapper/client.py
"""
Async client for the sitemap HTTP API.

Usage::

    async with SitemapClient("http://localhost:3000") as client:
        result = await client.generate("https://example.com", priority=0.8)
        print(result.stats.urls_in_sitemap, result.urls())
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout, ContentTypeError

from site_mapper.crawler.models import CrawlStats
from site_mapper.parser.sitemap_parser import parse_sitemap

__all__ = ("ApiError", "SitemapClient", "SitemapResponse")

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """Request to the API failed; ``status`` is the HTTP status when known."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(slots=True)
class SitemapResponse:
    sitemap_xml: str
    stats: CrawlStats
    debug: Optional[List[Dict[str, Any]]] = None

    def urls(self) -> List[str]:
        return parse_sitemap(self.sitemap_xml)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_generate_body(body: Any) -> SitemapResponse:
    if not isinstance(body, dict):
        raise ApiError("Server returned an invalid sitemap response")
    stats = body.get("stats")
    xml = body.get("sitemapXML")
    if (
        not isinstance(xml, str)
        or not isinstance(stats, dict)
        or not all(_is_number(stats.get(k)) for k in ("urlsDiscovered", "urlsInSitemap", "crawlTimeSeconds"))
    ):
        raise ApiError("Server returned an invalid sitemap response")
    return SitemapResponse(
        sitemap_xml=xml,
        stats=CrawlStats(
            urls_discovered=int(stats["urlsDiscovered"]),
            urls_in_sitemap=int(stats["urlsInSitemap"]),
            crawl_time_seconds=float(stats["crawlTimeSeconds"]),
        ),
        debug=body.get("debug"),
    )


def _stats_from_headers(headers: Mapping[str, str]) -> CrawlStats:
    try:
        return CrawlStats(
            urls_discovered=int(headers["X-Urls-Discovered"]),
            urls_in_sitemap=int(headers["X-Urls-In-Sitemap"]),
            crawl_time_seconds=float(headers["X-Crawl-Time-Seconds"]),
        )
    except (KeyError, ValueError) as exc:
        raise ApiError(f"Missing or invalid crawl stats header: {exc}") from None


class SitemapClient:
    """Thin aiohttp client; use as an async context manager."""

    def __init__(self, base_url: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> SitemapClient:
        self._session = ClientSession(timeout=ClientTimeout(total=self._timeout))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    @staticmethod
    def _payload(
        url: str,
        change_freq: Optional[str],
        priority: Optional[float],
        include_last_mod: Optional[bool],
        include_debug: Optional[bool] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"url": url}
        if change_freq is not None:
            payload["changeFreq"] = change_freq
        if priority is not None:
            payload["priority"] = priority
        if include_last_mod is not None:
            payload["includeLastMod"] = include_last_mod
        if include_debug is not None:
            payload["includeDebug"] = include_debug
        return payload

    async def generate(
        self,
        url: str,
        *,
        change_freq: Optional[str] = None,
        priority: Optional[float] = None,
        include_last_mod: Optional[bool] = None,
        include_debug: Optional[bool] = None,
    ) -> SitemapResponse:
        """POST /api/generate-sitemap and validate the response shape."""
        payload = self._payload(url, change_freq, priority, include_last_mod, include_debug)

        async def call(resp: ClientResponse) -> SitemapResponse:
            return _parse_generate_body(await self._json(resp))

        return await self._post("/api/generate-sitemap", payload, call)

    async def download(
        self,
        url: str,
        *,
        change_freq: Optional[str] = None,
        priority: Optional[float] = None,
        include_last_mod: Optional[bool] = None,
    ) -> SitemapResponse:
        """POST /api/download-sitemap; stats come from the ``X-*`` headers."""
        payload = self._payload(url, change_freq, priority, include_last_mod)

        async def call(resp: ClientResponse) -> SitemapResponse:
            return SitemapResponse(sitemap_xml=await resp.text(), stats=_stats_from_headers(resp.headers))

        return await self._post("/api/download-sitemap", payload, call)

    async def _post(self, path: str, payload: Dict[str, Any], on_success):
        if not self._session:
            raise RuntimeError("Client must be used as async context manager")
        try:
            async with self._session.post(f"{self.base_url}{path}", json=payload) as resp:
                if resp.status >= 400:
                    raise ApiError(await self._error_message(resp), resp.status)
                return await on_success(resp)
        except asyncio.TimeoutError:
            raise ApiError("Request timed out. Please try again.", 408) from None
        except ClientError as exc:
            raise ApiError(f"Network error: {exc}") from exc

    @staticmethod
    async def _json(resp: ClientResponse) -> Any:
        try:
            return await resp.json()
        except (ContentTypeError, ValueError):
            raise ApiError("Invalid response format from server", resp.status) from None

    @classmethod
    async def _error_message(cls, resp: ClientResponse) -> str:
        body = await cls._json(resp)
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return f"Request failed with status {resp.status}"
