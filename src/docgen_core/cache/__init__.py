"""Resolution cache."""

from .cache import (
    DEFAULT_TTL_SECONDS,
    CacheEntry,
    CacheStats,
    ResolutionCache,
    context_fingerprint,
    make_cache_key,
)

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "CacheStats",
    "ResolutionCache",
    "context_fingerprint",
    "make_cache_key",
]
