# site_mapper/crawler/link_extractor.py
"""
Link resolution, filtering and anchor extraction for SiteMapper.
"""
from __future__ import annotations

import re
from typing import Iterator, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__ = ("resolve_link", "is_internal", "is_skippable_resource", "iter_hrefs")

_IGNORED_PREFIXES = ("#", "javascript:", "mailto:", "tel:")

_RESOURCE_RE = re.compile(
    r"\.(jpg|jpeg|png|gif|svg|webp|bmp|pdf|zip|rar|7z|tar|gz|exe|dmg|iso|mp4|mp3|ogg|woff2?|ttf|ico)(?:$|\?)",
    re.IGNORECASE,
)


def resolve_link(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve *href* against *base_url*.

    Returns ``None`` for empty values, fragment-only links and
    ``javascript:``/``mailto:``/``tel:`` links, or when resolution fails.
    """
    if not href:
        return None
    raw = href.strip()
    if not raw or raw.lower().startswith(_IGNORED_PREFIXES):
        return None
    try:
        absolute = urljoin(base_url, raw)
        parts = urlsplit(absolute)
        parts.port  # noqa: B018 - validates the port
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return absolute


def is_internal(url: str, host: str) -> bool:
    """True iff the hostname of *url* equals *host* exactly (no subdomains)."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    return hostname is not None and hostname == host.lower()


def is_skippable_resource(url: str) -> bool:
    """True for images, archives, documents, media, fonts and icons; True on parse failure."""
    try:
        parts = urlsplit(url)
        parts.port  # noqa: B018
    except ValueError:
        return True
    if not parts.scheme or not parts.netloc:
        return True
    target = parts.path + (f"?{parts.query}" if parts.query else "")
    return bool(_RESOURCE_RE.search(target))


def iter_hrefs(html: str) -> Iterator[str]:
    """Yield raw ``href`` values of ``<a>`` tags in document order.

    ``html.parser`` is lenient with broken markup, so malformed pages still
    yield whatever anchors can be recovered.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href = tag.get("href")
        if isinstance(href, str):
            yield href
