"""site_mapper.server: HTTP API генератора sitemap (aiohttp.web)."""
from __future__ import annotations

from site_mapper.server.app import create_app, run_server

__all__ = ["create_app", "run_server"]
