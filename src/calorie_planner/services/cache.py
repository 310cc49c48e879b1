"""Simple cache abstractions."""

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


class InMemoryCache(Cache):
    """Unbounded in-memory cache with lazy expiry."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> object | None:
        """Return a cached value, dropping it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)


def search_cache_key(
    query: str, page: int, page_size: int, region: str, base_url: str
) -> str:
    """Build a deterministic key from normalized search parameters."""
    return json.dumps(
        {
            "q": query.lower(),
            "page": page,
            "pageSize": page_size,
            "region": region,
            "base": base_url,
        },
        sort_keys=True,
    )
