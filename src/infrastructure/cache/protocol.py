"""Protocol definition for response caching."""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class CacheEntry:
    """A cached, already validated response.

    Entries are never updated in place. A second ``set`` for the same key
    replaces the entry.
    """

    key: str
    value: Any
    created_at: float  # Epoch seconds
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_seconds


class ResponseCache(Protocol):
    """Protocol for exact-match response caches.

    Every operation is synchronous. Callers on the event loop rely on that:
    a lookup followed by an eviction cannot interleave with another task.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired.

        Expired entries are removed as part of the lookup.
        """
        ...

    def set(self, key: str, value: Any, ttl_minutes: float | None = None) -> None:
        """Store a value, evicting one entry if the cache is over capacity.

        Args:
            key: Cache key, usually from ``make_cache_key``.
            value: The validated response to store.
            ttl_minutes: Lifetime of the entry; the cache default when None.
        """
        ...

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        ...

    def clear(self) -> None:
        """Remove all cached entries."""
        ...

    def count(self) -> int:
        """Return the number of stored entries (expired ones included)."""
        ...
