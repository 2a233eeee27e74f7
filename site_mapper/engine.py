# File: site_mapper/engine.py
"""site_mapper.engine: Оркестрация обхода и генерации sitemap для CLI и HTTP-сервиса."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

from site_mapper.config import CrawlSettings
from site_mapper.crawler.crawler import SitemapCrawler
from site_mapper.crawler.models import CrawlRequest, CrawlResult
from site_mapper.logger import logger
from site_mapper.report.sitemap import SitemapOptions, render_sitemap

__all__ = ["SitemapBuild", "run_crawl", "build_sitemap"]


@dataclass(slots=True)
class SitemapBuild:
    """Готовый sitemap вместе с результатом обхода."""

    xml: str
    crawl: CrawlResult

    def payload(self, *, include_debug: bool = False) -> Dict[str, Any]:
        """Тело ответа ``/api/generate-sitemap``."""
        body: Dict[str, Any] = {"sitemapXML": self.xml, "stats": self.crawl.stats.to_dict()}
        if include_debug and self.crawl.debug is not None:
            body["debug"] = self.crawl.debug_dicts()
        return body


async def run_crawl(request: CrawlRequest, settings: Optional[CrawlSettings] = None) -> CrawlResult:
    """Запускает SitemapCrawler в контексте и возвращает CrawlResult."""
    async with SitemapCrawler(request, settings) as crawler:
        return await crawler.crawl()


async def build_sitemap(
    request: CrawlRequest,
    options: Optional[SitemapOptions] = None,
    *,
    settings: Optional[CrawlSettings] = None,
    timeout: Optional[float] = None,
) -> SitemapBuild:
    """Обходит сайт и рендерит sitemap из посещённых URL.

    ``timeout`` ограничивает всю операцию; при превышении обход отменяется
    и пробрасывается ``asyncio.TimeoutError``.
    """
    try:
        if timeout:
            result = await asyncio.wait_for(run_crawl(request, settings), timeout=timeout)
        else:
            result = await run_crawl(request, settings)
    except asyncio.TimeoutError:
        logger.error("Обход %s не завершён за %s секунд", request.seed_url, timeout)
        raise

    xml = render_sitemap(result.visited[: request.max_pages], options)
    return SitemapBuild(xml=xml, crawl=result)
