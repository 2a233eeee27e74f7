# File: tests/test_robots.py
import asyncio

import pytest
from aiohttp import ClientSession, web

from site_mapper.crawler.robots import RobotsPolicy, fetch_robots, parse_robots, robots_url

AGENT = "sitemap-generator"


def test_wildcard_group():
    policy = parse_robots("User-agent: *\nDisallow: /private\n", AGENT)
    assert not policy.is_allowed("/private")
    assert not policy.is_allowed("/private/page")
    assert not policy.is_allowed("/privateer")
    assert policy.is_allowed("/public")
    assert policy.is_allowed("/")


def test_agent_group_is_merged_with_wildcard():
    text = """
    # comment line
    User-agent: Googlebot
    Disallow: /google-only

    User-Agent: Sitemap-Generator
    Disallow: /admin   # trailing comment

    User-agent: *
    Disallow: /tmp
    """
    policy = parse_robots(text, AGENT)
    assert policy.disallow == frozenset({"/admin", "/tmp"})
    assert policy.is_allowed("/google-only")


def test_consecutive_user_agents_share_group():
    text = "User-agent: bot-a\nUser-agent: sitemap-generator\nDisallow: /shared\n\nUser-agent: bot-b\nDisallow: /b\n"
    policy = parse_robots(text, AGENT)
    assert policy.disallow == frozenset({"/shared"})


def test_empty_disallow_allows_everything():
    policy = parse_robots("User-agent: *\nDisallow:\n", AGENT)
    assert policy.disallow == frozenset()
    assert policy.is_allowed("/anything")


def test_disallow_before_any_user_agent_applies_to_all():
    policy = parse_robots("Disallow: /early\nUser-agent: other\nDisallow: /other\n", AGENT)
    assert policy.disallow == frozenset({"/early"})


def test_allow_lines_and_garbage_are_ignored():
    policy = parse_robots("User-agent: *\nAllow: /private/ok\nDisallow: /private\nnonsense\nSitemap: x\n", AGENT)
    assert not policy.is_allowed("/private/ok")


def test_default_policy_allows_all():
    assert RobotsPolicy().is_allowed("/whatever")


def test_robots_url():
    assert robots_url("https://example.com/deep/path?q=1") == "https://example.com/robots.txt"
    assert robots_url("http://127.0.0.1:8080/") == "http://127.0.0.1:8080/robots.txt"


@pytest.mark.asyncio()
async def test_fetch_robots_ok(serve_site):
    async def robots(_):
        return web.Response(text="User-agent: *\nDisallow: /private\n", content_type="text/plain")

    base = await serve_site({"/robots.txt": robots})
    async with ClientSession() as session:
        result = await fetch_robots(session, base, agent=AGENT)
    assert result.ok
    assert result.policy.disallow == frozenset({"/private"})


@pytest.mark.asyncio()
async def test_fetch_robots_missing_is_fail_open(serve_site):
    base = await serve_site({"/": "<p>home</p>"})
    async with ClientSession() as session:
        result = await fetch_robots(session, base, agent=AGENT)
    assert not result.ok
    assert result.error == "HTTP 404"
    assert result.policy.is_allowed("/anything")


@pytest.mark.asyncio()
async def test_fetch_robots_timeout_is_fail_open(serve_site):
    async def slow(_):
        await asyncio.sleep(1.0)
        return web.Response(text="User-agent: *\nDisallow: /", content_type="text/plain")

    base = await serve_site({"/robots.txt": slow})
    async with ClientSession() as session:
        result = await fetch_robots(session, base, agent=AGENT, timeout=0.2)
    assert not result.ok
    assert result.policy.disallow == frozenset()


@pytest.mark.asyncio()
async def test_fetch_robots_connection_refused(unused_tcp_port):
    async with ClientSession() as session:
        result = await fetch_robots(session, f"http://127.0.0.1:{unused_tcp_port}/", agent=AGENT)
    assert not result.ok
    assert result.policy.is_allowed("/")
