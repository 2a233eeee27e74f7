# site_mapper/crawler/robots.py
"""
robots.txt loading and the disallow-prefix policy derived from it.

Matching is a plain prefix test on the URL path; ``*`` and ``$`` patterns
are not interpreted.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional
from urllib.parse import urlsplit, urlunsplit

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_mapper.logger import logger

__all__ = ("RobotsPolicy", "RobotsFetchResult", "parse_robots", "fetch_robots", "robots_url")

WILDCARD_AGENT = "*"


@dataclass(frozen=True)
class RobotsPolicy:
    """Disallow prefixes that apply to this crawler."""

    disallow: FrozenSet[str] = field(default_factory=frozenset)

    def is_allowed(self, path: str) -> bool:
        """False if *path* starts with any disallowed prefix."""
        return not any(path.startswith(prefix) for prefix in self.disallow if prefix)


@dataclass(frozen=True)
class RobotsFetchResult:
    """robots.txt download outcome; on failure ``policy`` is empty (allow all)."""

    policy: RobotsPolicy
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_robots(text: str, agent: str) -> RobotsPolicy:
    """Parse robots.txt into the union of *agent*'s and the wildcard group's disallows."""
    rules: Dict[str, List[str]] = {}
    current: List[str] = []
    in_rules = False
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, _, val = line.partition(":")
        key = key.strip().lower()
        val = val.strip()
        if key == "user-agent":
            # consecutive User-agent lines share one group
            if in_rules:
                current = []
                in_rules = False
            name = val.lower()
            current.append(name)
            rules.setdefault(name, [])
        elif key == "disallow":
            in_rules = True
            targets = current or [WILDCARD_AGENT]
            if not val:
                continue
            for name in targets:
                rules.setdefault(name, []).append(val)
        elif key == "allow":
            in_rules = True

    disallow = set(rules.get(WILDCARD_AGENT, []))
    agent = agent.lower()
    if agent != WILDCARD_AGENT:
        disallow.update(rules.get(agent, []))
    return RobotsPolicy(frozenset(disallow))


def robots_url(base_url: str) -> str:
    parts = urlsplit(base_url)
    return urlunsplit((parts.scheme, parts.netloc, "/robots.txt", "", ""))


async def fetch_robots(
    session: ClientSession,
    base_url: str,
    *,
    agent: str,
    timeout: float = 3.0,
) -> RobotsFetchResult:
    """
    Download and parse ``/robots.txt`` of *base_url*'s host.

    Network errors, timeouts, non-200 statuses and undecodable bodies give
    an empty policy together with the reason. Other exceptions propagate.
    """
    url = robots_url(base_url)
    try:
        async with session.get(url, timeout=ClientTimeout(total=timeout)) as resp:
            if resp.status != 200:
                logger.debug("robots.txt %s -> HTTP %s", url, resp.status)
                return RobotsFetchResult(RobotsPolicy(), f"HTTP {resp.status}")
            text = await resp.text(errors="replace")
    except (ClientError, asyncio.TimeoutError, UnicodeDecodeError, LookupError) as exc:
        logger.warning("robots.txt недоступен (%s): %s", url, str(exc) or type(exc).__name__)
        return RobotsFetchResult(RobotsPolicy(), f"{type(exc).__name__}: {exc}")
    policy = parse_robots(text, agent)
    logger.debug("robots.txt %s: %d disallow rules", url, len(policy.disallow))
    return RobotsFetchResult(policy)
