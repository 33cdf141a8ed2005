"""
Cache Manager

Thin wrapper over Django's cache framework with consistent key building and
per-prefix TTLs. Owners of cached data (for example the aggregation service)
decide what to cache and when to invalidate; this module holds no state.
"""

import hashlib
import logging
from typing import Any, Callable, Optional, Union

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

DEFAULT_CACHE = "default"

# Default TTLs by key prefix
DEFAULT_TTL = 60 * 5  # 5 minutes
TTL_MAPPING = {
    "aggregation": 60 * 5,
}

_MISSING = object()


def secure_hash(data: Union[str, bytes], length: int = 8) -> str:
    """
    Create a truncated SHA-256 digest of data

    Args:
        data: String or bytes to hash
        length: Length of the resulting hash digest to return (truncated)

    Returns:
        Truncated hexadecimal digest
    """
    if isinstance(data, str):
        data = data.encode()
    return hashlib.sha256(data).hexdigest()[:length]


def _debug_enabled() -> bool:
    return settings.DEBUG and getattr(settings, "CACHE_DEBUG", False)


class CacheManager:
    """
    Manages caching operations with consistent keys and TTLs
    """

    @staticmethod
    def build_key(prefix: str, *args) -> str:
        """
        Generate a consistent cache key with a prefix

        Args:
            prefix: A string prefix for the cache key
            *args: Positional arguments to include in the key

        Returns:
            A unique cache key string
        """
        key = ":".join([prefix] + [str(arg) for arg in args])

        # Memcached/Redis friendly length
        if len(key) > 200:
            key = f"{prefix}:hash:{secure_hash(key)}"

        return key

    @staticmethod
    def ttl_for(key: str) -> int:
        for prefix, ttl_value in TTL_MAPPING.items():
            if key.startswith(f"{prefix}:"):
                return ttl_value
        return DEFAULT_TTL

    @staticmethod
    def get(key: str, default=None, cache_name=DEFAULT_CACHE) -> Any:
        """
        Retrieve a value from cache

        Args:
            key: Cache key string
            default: Default value if key is not in cache
            cache_name: The cache backend to use

        Returns:
            The cached value or the default
        """
        try:
            value = caches[cache_name].get(key, default)
        except Exception as e:
            logger.warning(f"Cache get error for key '{key}': {e}")
            return default

        if _debug_enabled():
            result = "HIT" if value is not default else "MISS"
            logger.debug(f"Cache {result}: {key} from {cache_name}")

        return value

    @staticmethod
    def set(key: str, value: Any, ttl=None, cache_name=DEFAULT_CACHE) -> bool:
        """
        Store a value in cache

        Args:
            key: Cache key string
            value: Value to cache
            ttl: Time-to-live in seconds or None for the prefix default
            cache_name: The cache backend to use

        Returns:
            Boolean indicating success
        """
        if ttl is None:
            ttl = CacheManager.ttl_for(key)

        try:
            caches[cache_name].set(key, value, ttl)
        except Exception as e:
            logger.warning(f"Cache set error for key '{key}': {e}")
            return False

        if _debug_enabled():
            logger.debug(f"Cache SET: {key} in {cache_name} with TTL={ttl}")
        return True

    @staticmethod
    def delete(key: str, cache_name=DEFAULT_CACHE) -> bool:
        """
        Remove a value from cache

        Args:
            key: Cache key string
            cache_name: The cache backend to use

        Returns:
            Boolean indicating success
        """
        try:
            caches[cache_name].delete(key)
        except Exception as e:
            # A failed invalidation leaves stale data until the TTL expires
            logger.error(f"Cache delete error for key '{key}': {e}")
            return False

        if _debug_enabled():
            logger.debug(f"Cache DELETE: {key} from {cache_name}")
        return True

    @staticmethod
    def incr(key: str, cache_name=DEFAULT_CACHE) -> Optional[int]:
        """
        Increment a counter, creating it (without expiry) when missing

        Args:
            key: Cache key string
            cache_name: The cache backend to use

        Returns:
            The new counter value, or None if the backend failed
        """
        cache = caches[cache_name]
        try:
            try:
                value = cache.incr(key)
            except ValueError:
                # Another writer may create the counter between incr and add
                if cache.add(key, 1, None):
                    value = 1
                else:
                    value = cache.incr(key)
        except Exception as e:
            logger.error(f"Cache incr error for key '{key}': {e}")
            return None

        if _debug_enabled():
            logger.debug(f"Cache INCR: {key} in {cache_name} to {value}")
        return value

    @staticmethod
    def get_or_set(
        key: str, builder: Callable[[], Any], ttl=None, cache_name=DEFAULT_CACHE
    ) -> Any:
        """
        Read-through helper: return the cached value or build and store it.

        Args:
            key: Cache key string
            builder: Zero-argument callable producing the value on a miss
            ttl: Time-to-live in seconds or None for the prefix default
            cache_name: The cache backend to use

        Returns:
            The cached or freshly built value
        """
        value = CacheManager.get(key, _MISSING, cache_name=cache_name)
        if value is not _MISSING:
            return value

        value = builder()
        CacheManager.set(key, value, ttl=ttl, cache_name=cache_name)
        return value
