# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Dict, List

import pytest
import pytest_asyncio
from aiohttp import web

from site_mapper.config import CrawlSettings
from site_mapper.logger import configure

SiteFactory = Callable[[Dict[str, Any]], Awaitable[str]]


@pytest.fixture(autouse=True)
def _reset_logging():
    """CliRunner swaps sys.stderr; rebind the project logger after every test."""
    yield
    configure(level="INFO")


@pytest.fixture()
def crawl_settings() -> CrawlSettings:
    """Crawl settings with short timeouts for local test sites."""
    return CrawlSettings(
        request_timeout=2.0,
        robots_timeout=1.0,
        user_agent="TestAgent/1.0",
    )


def _as_handler(page: Any):
    """
    Page description -> aiohttp handler.

    * ``str``            -> 200 text/html with that body
    * ``(status, body)`` -> that status, text/html
    * callable           -> used as the handler itself
    """
    if callable(page):
        return page
    if isinstance(page, tuple):
        status, body = page
    else:
        status, body = 200, page

    async def handler(_: web.Request) -> web.Response:
        return web.Response(text=body, status=status, content_type="text/html")

    return handler


@pytest_asyncio.fixture
async def serve_site(unused_tcp_port_factory) -> AsyncIterator[SiteFactory]:
    """Start a local site from ``{path: page}`` and return its base URL."""
    runners: List[web.AppRunner] = []

    async def _serve(pages: Dict[str, Any]) -> str:
        app = web.Application()
        for path, page in pages.items():
            app.router.add_get(path, _as_handler(page))
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    yield _serve

    for runner in runners:
        await runner.cleanup()
