"""site_mapper.crawler: обход сайта и сбор URL для sitemap."""
from __future__ import annotations

from site_mapper.crawler.crawler import SeedURLError, SitemapCrawler
from site_mapper.crawler.models import CrawlRequest, CrawlResult, CrawlStats, TraceEntry
from site_mapper.crawler.normalizer import normalize_url

__all__ = [
    "CrawlRequest",
    "CrawlResult",
    "CrawlStats",
    "SeedURLError",
    "SitemapCrawler",
    "TraceEntry",
    "normalize_url",
]
