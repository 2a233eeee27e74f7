"""site_mapper.report.sitemap: Генерация sitemap.xml (протокол sitemaps.org) через Jinja2."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Final, Optional, Sequence

from jinja2 import Environment, PackageLoader

__all__ = ["SitemapOptions", "render_sitemap", "escape_xml", "CHANGE_FREQUENCIES"]

CHANGE_FREQUENCIES: Final = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")

_XML_ENTITIES: Final = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    '"': "&quot;",
    "'": "&apos;",
}


@dataclass(frozen=True)
class SitemapOptions:
    """Метаданные, одинаковые для всех записей sitemap."""

    change_frequency: str = "weekly"
    priority: float = 0.5
    include_last_modified: bool = False

    def __post_init__(self) -> None:
        if self.change_frequency not in CHANGE_FREQUENCIES:
            raise ValueError(f"changefreq must be one of {', '.join(CHANGE_FREQUENCIES)}")
        if isinstance(self.priority, bool) or not 0.0 <= float(self.priority) <= 1.0:
            raise ValueError("priority must be a number between 0.0 and 1.0")


def escape_xml(value: str) -> str:
    """Экранирует ``< > & " '`` в сущности XML."""
    return "".join(_XML_ENTITIES.get(ch, ch) for ch in value)


def _format_priority(priority: float) -> str:
    text = repr(float(priority))
    return text[:-2] if text.endswith(".0") else text


_env = Environment(
    loader=PackageLoader("site_mapper", "report/templates"),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["xml_escape"] = escape_xml


def render_sitemap(
    urls: Sequence[str],
    options: Optional[SitemapOptions] = None,
    *,
    today: Optional[date] = None,
) -> str:
    """Рендерит sitemap для списка URL в заданном порядке.

    Args:
        urls: адреса для ``<loc>``.
        options: changefreq/priority/lastmod; по умолчанию weekly, 0.5, без lastmod.
        today: дата для ``<lastmod>``; по умолчанию текущая дата UTC. Одна на весь вызов.

    Returns:
        Строка XML-документа.

    Пример:
    ```python
    from site_mapper.report.sitemap import SitemapOptions, render_sitemap
    xml = render_sitemap(["https://example.com/"], SitemapOptions(priority=0.8))
    ```
    """
    options = options or SitemapOptions()
    lastmod = None
    if options.include_last_modified:
        lastmod = (today or datetime.now(timezone.utc).date()).isoformat()
    template = _env.get_template("sitemap.xml.j2")
    return template.render(
        urls=list(urls),
        lastmod=lastmod,
        changefreq=options.change_frequency,
        priority=_format_priority(options.priority),
    )
