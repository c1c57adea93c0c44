"""Bounded in-memory response cache with per-entry TTL."""

import copy
import hashlib
import json
import time
from collections.abc import Callable
from typing import Any

import structlog

from src.infrastructure.cache.exceptions import CacheConfigurationError
from src.infrastructure.cache.protocol import CacheEntry

logger = structlog.get_logger()


def make_cache_key(
    question: str,
    context: Any = None,
    response_format: str | None = None,
) -> str:
    """Fingerprint a request for exact-match caching.

    The question is lower-cased and trimmed so incidental case and
    whitespace differences map to the same key. The payload is serialized
    with sorted keys so dict ordering in ``context`` does not matter.

    Args:
        question: The user's question.
        context: JSON-serializable subset of request context.
        response_format: Response mode, part of the key so modes never mix.

    Returns:
        Hex SHA-256 digest.
    """
    payload = {
        "question": question.lower().strip(),
        "context": context,
        "responseFormat": response_format,
    }
    canonical = json.dumps(
        payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class InMemoryResponseCache:
    """Process-local response cache.

    Holds at most ``max_entries`` entries. When an insert pushes the size over
    the bound, exactly one entry is evicted (the oldest insertion). Expired
    entries are removed lazily on lookup rather than by a background sweep.

    Values are deep-copied on the way in and out so a caller mutating a
    response cannot change what later callers receive.
    """

    def __init__(
        self,
        *,
        max_entries: int = 100,
        default_ttl_minutes: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum number of stored entries.
            default_ttl_minutes: TTL used when ``set`` gets no explicit TTL.
            clock: Source of the current time in seconds.

        Raises:
            CacheConfigurationError: If ``max_entries`` is below 1.
        """
        if max_entries < 1:
            raise CacheConfigurationError(
                f"max_entries must be at least 1, got {max_entries}"
            )
        self._max_entries = max_entries
        self._default_ttl_minutes = default_ttl_minutes
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

        logger.info(
            "response_cache_initialized",
            max_entries=max_entries,
            default_ttl_minutes=default_ttl_minutes,
        )

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key[:12])
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("cache_miss_expired", key=key[:12])
            return None

        logger.info("cache_hit", key=key[:12])
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl_minutes: float | None = None) -> None:
        ttl = self._default_ttl_minutes if ttl_minutes is None else ttl_minutes

        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            key=key,
            value=copy.deepcopy(value),
            created_at=self._clock(),
            ttl_seconds=ttl * 60,
        )

        if len(self._entries) > self._max_entries:
            evicted = next(iter(self._entries))
            del self._entries[evicted]
            logger.debug("cache_evicted", key=evicted[:12])

        logger.debug(
            "cache_set",
            key=key[:12],
            ttl_minutes=ttl,
            total_cached=len(self._entries),
        )

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        logger.info("response_cache_cleared")

    def count(self) -> int:
        return len(self._entries)
