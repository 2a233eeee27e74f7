# File: site_mapper/server/validation.py
"""
Схема тела запросов ``/api/generate-sitemap`` и ``/api/download-sitemap``.

Лишние поля запрещены; URL проверяется на схему http/https и на приватный
хост (защита от SSRF) до того, как обход вообще будет запущен.
"""
from __future__ import annotations

import ipaddress
import re
import socket
from typing import Any, Literal, Optional, Union
from urllib.parse import urlsplit

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from site_mapper.report.sitemap import SitemapOptions

__all__ = ["SitemapRequest", "is_private_host", "format_validation_error"]

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
ChangeFreq = Literal["always", "hourly", "daily", "weekly", "monthly", "yearly", "never"]


# 127.1, 2130706433, 0x7f000001, 017700000001: resolvers read these as IPv4
_NUMERIC_HOST_RE = re.compile(r"^(0x[0-9a-f]*|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+)){0,3}$")


def _parse_ip(host: str) -> IPAddress:
    """IP-литерал в каноническом или сокращённом (inet_aton) виде; ValueError для имён."""
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        if not _NUMERIC_HOST_RE.match(host):
            raise
    try:
        return ipaddress.IPv4Address(socket.inet_aton(host))
    except OSError:
        raise ValueError(f"not an IPv4 address: {host!r}") from None


def is_private_host(host: str) -> bool:
    """localhost и IP-литералы из приватных/служебных диапазонов. DNS не резолвится."""
    host = host.strip("[]").rstrip(".").lower()
    if host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        ip = _parse_ip(host)
    except ValueError:
        return False
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
        or ip.is_multicast
    )


class SitemapRequest(BaseModel):
    """Проверенное тело запроса на генерацию sitemap."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: StrictStr = Field(..., min_length=1, max_length=2048)
    change_freq: ChangeFreq = Field("weekly", alias="changeFreq")
    priority: float = Field(0.5, ge=0, le=1)
    include_last_mod: StrictBool = Field(False, alias="includeLastMod")
    include_debug: StrictBool = Field(False, alias="includeDebug")

    @field_validator("priority", mode="before")
    def _numbers_only(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("Priority must be a number")
        return v

    @field_validator("url")
    def _check_url(cls, v: str, info: ValidationInfo) -> str:
        try:
            parts = urlsplit(v)
            host = parts.hostname
        except ValueError:
            raise ValueError("Invalid URL format") from None
        if parts.scheme.lower() not in ("http", "https"):
            raise ValueError("URL scheme not allowed (only http and https)")
        if not host:
            raise ValueError("Invalid URL format")
        allow_private = bool(info.context and info.context.get("allow_private_hosts"))
        if not allow_private and is_private_host(host):
            raise ValueError("Hostname is private (SSRF prevention)")
        return v

    def sitemap_options(self) -> SitemapOptions:
        return SitemapOptions(
            change_frequency=self.change_freq,
            priority=self.priority,
            include_last_modified=self.include_last_mod,
        )


def format_validation_error(exc: ValidationError) -> str:
    """``"url: Invalid URL format; foo: Extra inputs are not permitted"``."""
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        msg: Optional[str] = err.get("msg", "Invalid value")
        if msg and msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.append(f"{field}: {msg}")
    return "; ".join(messages) or "Invalid request format"
