# site_mapper/crawler/normalizer.py
"""
URL canonicalisation used as the crawl's deduplication key.

:func:`normalize_url` is pure: the same input always gives the same output
(or ``None`` when the input is not an absolute URL with a host), and its
output is a fixed point of itself.
"""
from __future__ import annotations

import posixpath
import re
from typing import Dict, FrozenSet, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

__all__ = ("normalize_url", "TRACKING_PARAMS", "DEFAULT_PORTS")

TRACKING_PARAMS: FrozenSet[str] = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
    }
)

DEFAULT_PORTS: Dict[str, int] = {"http": 80, "https": 443}

_MULTI_SLASH_RE = re.compile(r"/{2,}")


def _normalize_path(path: str) -> str:
    path = _MULTI_SLASH_RE.sub("/", path or "/")
    if not path.startswith("/"):
        path = "/" + path
    if "/." in path:
        trailing = path.endswith("/")
        path = posixpath.normpath(path)
        if trailing and path != "/":
            path += "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def _build_netloc(netloc: str, host: str, scheme: str, port: Optional[int]) -> str:
    userinfo, sep, _ = netloc.rpartition("@")
    host_part = f"[{host}]" if ":" in host else host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host_part = f"{host_part}:{port}"
    return f"{userinfo}{sep}{host_part}"


def normalize_url(raw_url: str) -> Optional[str]:
    """
    Canonical form of *raw_url*, or ``None`` if it cannot be parsed.

    Drops the fragment, lower-cases scheme and host, removes the scheme's
    default port, strips tracking parameters, sorts the remaining query
    parameters by key, collapses repeated slashes and strips one trailing
    slash unless the path is ``/``.
    """
    if not isinstance(raw_url, str):
        return None
    try:
        parts = urlsplit(raw_url.strip())
        port = parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        return None

    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in TRACKING_PARAMS]
    params.sort(key=lambda kv: kv[0])  # stable: equal keys keep their order

    return urlunsplit(
        (
            scheme,
            _build_netloc(parts.netloc, host, scheme, port),
            _normalize_path(parts.path),
            urlencode(params),
            "",
        )
    )
