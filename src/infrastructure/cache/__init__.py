"""Response caching infrastructure for validated AI responses."""

from src.infrastructure.cache.exceptions import CacheConfigurationError, CacheError
from src.infrastructure.cache.memory_cache import InMemoryResponseCache, make_cache_key
from src.infrastructure.cache.protocol import CacheEntry, ResponseCache

__all__ = [
    "CacheConfigurationError",
    "CacheEntry",
    "CacheError",
    "InMemoryResponseCache",
    "ResponseCache",
    "make_cache_key",
]
