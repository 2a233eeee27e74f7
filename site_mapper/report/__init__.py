"""site_mapper.report: Рендеринг sitemap-документа для CLI и HTTP-сервиса."""

from __future__ import annotations

from site_mapper.report.sitemap import CHANGE_FREQUENCIES, SitemapOptions, escape_xml, render_sitemap

__all__ = ["CHANGE_FREQUENCIES", "SitemapOptions", "escape_xml", "render_sitemap"]
