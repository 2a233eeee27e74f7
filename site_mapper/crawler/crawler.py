# === FILE: site_mapper/crawler/crawler.py ===
from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional
from urllib.parse import urlsplit

from aiohttp import ClientSession

from site_mapper.config import CrawlSettings
from site_mapper.crawler.fetcher import Fetcher
from site_mapper.crawler.fingerprint import FingerprintTable, fingerprint
from site_mapper.crawler.link_extractor import is_internal, is_skippable_resource, iter_hrefs, resolve_link
from site_mapper.crawler.models import CrawlRequest, CrawlResult, CrawlStats, PageData, TraceEntry
from site_mapper.crawler.normalizer import normalize_url
from site_mapper.crawler.robots import RobotsPolicy, fetch_robots

__all__ = ("SitemapCrawler", "SeedURLError")


class SeedURLError(ValueError):
    """Seed URL cannot be normalized; the crawl cannot start."""


class SitemapCrawler:
    """
    Последовательный BFS-краулер одного хоста с учётом robots.txt.

    Одна страница за раз: очередь, множества discovered/visited и таблица
    отпечатков принадлежат экземпляру и живут только один вызов :meth:`crawl`.
    """

    def __init__(self, request: CrawlRequest, settings: Optional[CrawlSettings] = None) -> None:
        self.request = request
        self.settings = settings or CrawlSettings()
        self.seed_normalized = normalize_url(request.seed_url)
        if self.seed_normalized is None:
            raise SeedURLError(f"cannot normalize seed URL: {request.seed_url!r}")
        self.host: str = urlsplit(self.seed_normalized).hostname or ""
        self.session: Optional[ClientSession] = None
        self.logger = logging.getLogger("SiteMapper")

        self.frontier: Deque[str] = deque()
        self.discovered: Dict[str, None] = {}
        self.visited: Dict[str, None] = {}
        self.fingerprints = FingerprintTable()
        self.robots = RobotsPolicy()
        self.trace: Optional[List[TraceEntry]] = [] if request.include_debug else None

    async def __aenter__(self) -> SitemapCrawler:
        self.session = ClientSession(
            headers={"User-Agent": self.settings.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def crawl(self) -> CrawlResult:
        if not self.session:
            raise RuntimeError("Crawler must be used as async context manager")
        self.logger.info("Старт обхода: %s (max_pages=%d)", self.request.seed_url, self.request.max_pages)
        start = time.monotonic()

        self.frontier.append(self.request.seed_url)
        self.discovered[self.seed_normalized] = None

        robots = await fetch_robots(
            self.session,
            self.seed_normalized,
            agent=self.settings.robots_agent,
            timeout=self.settings.robots_timeout,
        )
        self.robots = robots.policy
        fetcher = Fetcher(self.session, self.request.request_timeout)

        while self.frontier and len(self.visited) < self.request.max_pages:
            await self._process(self.frontier.popleft(), fetcher)

        elapsed = time.monotonic() - start
        stats = CrawlStats(
            urls_discovered=len(self.discovered),
            urls_in_sitemap=len(self.visited),
            crawl_time_seconds=round(elapsed, 2),
        )
        self.logger.info(
            "Завершено: %d страниц в sitemap, %d обнаружено за %.2f с",
            stats.urls_in_sitemap,
            stats.urls_discovered,
            elapsed,
        )
        return CrawlResult(
            discovered=list(self.discovered),
            visited=list(self.visited)[: self.request.max_pages],
            stats=stats,
            debug=self.trace,
        )

    async def _process(self, url: str, fetcher: Fetcher) -> None:
        """Take one frontier entry through to its terminal outcome."""
        normalized = normalize_url(url)
        if normalized is None:
            self._record(url, None, "invalid-url")
            return
        if normalized in self.visited:
            return
        self.discovered.setdefault(normalized, None)

        if is_skippable_resource(url):
            self._record(url, normalized, "skipped-resource")
            return

        path = urlsplit(url).path or "/"
        if not self.robots.is_allowed(path):
            self._record(url, normalized, "disallowed-by-robots", path=path)
            return

        self._record(url, normalized, "fetching")
        result = await fetcher.fetch(url)
        if not result.ok:
            if result.status is not None:
                self._record(url, normalized, "non-2xx-status", status=result.status)
            else:
                self._record(url, normalized, "fetch-error", message=result.error)
            self.logger.debug("Пропуск %s: %s", url, result.error)
            return

        page = result.page
        digest = fingerprint(page.body)
        canonical = self.fingerprints.register(digest, normalized)
        if canonical is not None:
            self._record(url, normalized, "duplicate-content", canonical=canonical)
            return
        self._record(url, normalized, "fetched", contentHash=digest[:8])

        self._enqueue_links(page, normalized)
        self.visited[normalized] = None

    def _enqueue_links(self, page: PageData, source: str) -> None:
        try:
            hrefs = list(iter_hrefs(page.text))
        except Exception as exc:  # extraction failure is not crawl-fatal
            self.logger.warning("Не удалось разобрать ссылки %s: %s", page.url, exc)
            return
        for href in hrefs:
            resolved = resolve_link(href, page.url)
            if resolved is None:
                continue
            normalized = normalize_url(resolved)
            if normalized is None or normalized in self.discovered:
                continue
            self.discovered[normalized] = None
            if not is_internal(resolved, self.host) or is_skippable_resource(resolved):
                continue
            self.frontier.append(resolved)
            self._record(resolved, normalized, "discovered", discoveredFrom=source)

    def _record(self, url: str, normalized: Optional[str], action: str, **extra: Any) -> None:
        if self.trace is not None:
            self.trace.append(TraceEntry(url, normalized, action, extra))
