# site_mapper/crawler/fetcher.py
"""
Fetcher module: one GET per URL with a fixed timeout.

Failures are returned as :class:`FetchResult` values; the crawl engine
records them and moves on.
"""
from __future__ import annotations

import asyncio

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_mapper.crawler.models import FetchResult, PageData


def _decode(body: bytes, charset: str | None) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        # unknown charset label in Content-Type
        return body.decode("utf-8", errors="replace")


class Fetcher:
    """Fetches pages through a shared session with a per-request timeout."""

    def __init__(self, session: ClientSession, timeout: float) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)

    async def fetch(self, url: str) -> FetchResult:
        """
        GET *url*.

        Returns a result with ``page`` set for 2xx responses, otherwise with
        ``error`` (and ``status`` when the server answered).
        """
        try:
            async with self.session.get(url, timeout=self.timeout, raise_for_status=False) as resp:
                if not 200 <= resp.status < 300:
                    return FetchResult(url, status=resp.status, error=f"HTTP {resp.status}")
                body = await resp.read()
                return FetchResult(
                    url,
                    status=resp.status,
                    page=PageData(url, body, _decode(body, resp.charset)),
                )
        except asyncio.TimeoutError:
            return FetchResult(url, error=f"timeout after {self.timeout.total}s")
        except (ClientError, ValueError) as exc:
            # ValueError: aiohttp rejects some URLs (e.g. bad IDNA host) before connecting
            return FetchResult(url, error=f"{type(exc).__name__}: {exc}")
