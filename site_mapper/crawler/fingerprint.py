# site_mapper/crawler/fingerprint.py
"""Exact-duplicate detection over raw page bodies."""
from __future__ import annotations

import hashlib
from typing import Dict, Optional, Union

__all__ = ("fingerprint", "FingerprintTable")


def fingerprint(body: Union[bytes, str]) -> str:
    """SHA-256 hex digest of *body* (``str`` is hashed as UTF-8)."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


class FingerprintTable:
    """Maps content hash to the first normalized URL that produced it."""

    def __init__(self) -> None:
        self._seen: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._seen)

    def canonical_for(self, digest: str) -> Optional[str]:
        return self._seen.get(digest)

    def register(self, digest: str, url: str) -> Optional[str]:
        """Record *url* for *digest*; return the earlier URL if the digest is known."""
        earlier = self._seen.get(digest)
        if earlier is None:
            self._seen[digest] = url
        return earlier
