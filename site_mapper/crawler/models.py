# site_mapper/crawler/models.py
"""
Data models for the SiteMapper crawler.

Everything here is created per crawl and discarded with its result; nothing
is cached across crawls.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_MAX_PAGES = 50
DEFAULT_REQUEST_TIMEOUT = 5.0


@dataclass(frozen=True, slots=True)
class CrawlRequest:
    """Immutable parameters of one crawl invocation."""

    seed_url: str
    max_pages: int = DEFAULT_MAX_PAGES
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    include_debug: bool = False

    def __post_init__(self) -> None:
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")


@dataclass(slots=True)
class PageData:
    """Fetched page: requested URL, raw body bytes and decoded text."""

    url: str
    body: bytes
    text: str


@dataclass(slots=True)
class FetchResult:
    """Outcome of a single GET; exactly one of ``page``/``error`` is set."""

    url: str
    status: Optional[int] = None
    page: Optional[PageData] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.page is not None


@dataclass(slots=True)
class TraceEntry:
    """One diagnostic record of the debug trace."""

    url: str
    normalized: Optional[str]
    action: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "normalized": self.normalized, "action": self.action, **self.extra}


@dataclass(frozen=True, slots=True)
class CrawlStats:
    urls_discovered: int
    urls_in_sitemap: int
    crawl_time_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "urlsDiscovered": self.urls_discovered,
            "urlsInSitemap": self.urls_in_sitemap,
            "crawlTimeSeconds": self.crawl_time_seconds,
        }


@dataclass(slots=True)
class CrawlResult:
    """Ordered discovered/visited URL lists, stats and the optional trace."""

    discovered: List[str]
    visited: List[str]
    stats: CrawlStats
    debug: Optional[List[TraceEntry]] = None

    def debug_dicts(self) -> Optional[List[Dict[str, Any]]]:
        if self.debug is None:
            return None
        return [entry.to_dict() for entry in self.debug]
