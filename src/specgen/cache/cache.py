"""Disk cache for OpenAPI documents fetched over HTTP.

Uses :mod:`diskcache` to keep the raw text of remote documents on the
filesystem for a configurable time-to-live, so regenerating code from the
same URL does not refetch it every time.

Cache keys are SHA-256 hashes of the URL.

See Also:
    :class:`~specgen.models.CacheConfig` -- the Pydantic model that
    controls ``enabled`` and ``ttl_seconds``.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

import diskcache

from specgen.models import CacheConfig


class SpecCache:
    """Disk-backed cache of remote document bodies.

    Stores ``{"content": str, "content_type": str}`` dicts in a
    :class:`diskcache.Cache` directory. When ``config.enabled`` is false no
    directory is created and every lookup misses.

    Args:
        cache_dir: Root directory for the cache. A ``documents/``
            subdirectory is created inside it.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).

    Example::

        cache = SpecCache("/tmp/specgen-cache", CacheConfig(ttl_seconds=300))
        cache.set("https://api.example.com/openapi.json", "{...}", "application/json")
        hit = cache.get("https://api.example.com/openapi.json")
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._cache: Optional[diskcache.Cache] = None
        self._cache_dir = Path(cache_dir)
        if config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "documents"))

    def get(self, url: str) -> Optional[dict[str, str]]:
        """Return the cached entry for *url*, or ``None`` on a miss."""
        if self._cache is None:
            return None
        return self._cache.get(self._make_key(url))

    def set(self, url: str, content: str, content_type: str = "") -> None:
        """Store the body fetched from *url*; a no-op when caching is disabled."""
        if self._cache is None:
            return
        self._cache.set(
            self._make_key(url),
            {"content": content, "content_type": content_type},
            expire=self._config.ttl_seconds,
        )

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    def _make_key(self, url: str) -> str:
        return hashlib.sha256(url.encode()).hexdigest()
