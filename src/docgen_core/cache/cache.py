"""Resolution cache: memoized resolve+render outcomes."""

import hashlib
import json
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from docgen_core.types import Strictness

if TYPE_CHECKING:
    from docgen_core.logging import DocgenLogger

DEFAULT_TTL_SECONDS = 300


def _canonical(value: Any) -> Any:
    """Make a context tree JSON-stable: mapping keys as strings, tuples as lists."""
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def context_fingerprint(context: Any) -> str:
    """Hash a render context by content.

    Equal trees give equal fingerprints regardless of key order or
    object identity.

    Args:
        context: Render context tree

    Returns:
        Hex SHA-256 digest
    """
    payload = json.dumps(
        _canonical(context),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def make_cache_key(
    platform: str,
    document_type: str,
    tech_stack: str,
    strictness: Strictness | str,
    context: Any,
) -> str:
    """Build the cache key for a request and context.

    Returns:
        Hex SHA-256 digest of the request tuple, strictness and context
        fingerprint
    """
    strictness_value = strictness.value if isinstance(strictness, Strictness) else strictness
    parts = [platform, document_type, tech_stack, strictness_value, context_fingerprint(context)]
    payload = json.dumps(parts, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """Stored outcome of one successful generation."""

    key: str
    rendered_output: str
    template_id: str
    fallback_path: tuple[str, ...]
    warnings: tuple[str, ...] = ()
    created_at: float = 0.0  # Cache clock reading


@dataclass
class CacheStats:
    """Counters reported by ResolutionCache.stats()."""

    hits: int = 0
    misses: int = 0
    entries: int = 0
    evictions: int = 0
    invalidations: int = 0
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    last_invalidated_at: datetime | None = None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "entries": self.entries,
            "evictions": self.evictions,
            "invalidations": self.invalidations,
            "ttl_seconds": self.ttl_seconds,
            "hit_rate": round(self.hit_rate, 4),
            "last_invalidated_at": (
                self.last_invalidated_at.isoformat() if self.last_invalidated_at else None
            ),
        }


@dataclass
class _Counters:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0
    last_invalidated_at: datetime | None = field(default=None)


class ResolutionCache:
    """TTL cache in front of resolution and rendering.

    Entries expire ``ttl_seconds`` after they were stored and are all
    dropped by invalidate_all() (called on template reload). Every
    invalidation starts a new generation; a put tagged with an older
    generation is discarded, so a render that began before a reload
    cannot store its output afterwards. All operations hold one lock.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        logger: "DocgenLogger | None" = None,
    ):
        """Initialize cache.

        Args:
            ttl_seconds: Entry lifetime in seconds
            clock: Monotonic time source (injectable for tests)
            logger: Optional logger
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._logger = logger
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._counters = _Counters()
        self._generation = 0

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @property
    def generation(self) -> int:
        """Number of invalidations so far; read before resolving, pass to put()."""
        with self._lock:
            return self._generation

    def get(self, key: str) -> CacheEntry | None:
        """Get a live entry.

        Args:
            key: Cache key from make_cache_key()

        Returns:
            The entry, or None on miss or expiry
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry):
                del self._entries[key]
                self._counters.evictions += 1
                entry = None
            if entry is None:
                self._counters.misses += 1
            else:
                self._counters.hits += 1
            return entry

    def put(self, key: str, entry: CacheEntry, generation: int | None = None) -> CacheEntry | None:
        """Store an entry, stamping its creation time from the cache clock.

        Args:
            key: Cache key from make_cache_key()
            entry: Outcome to store
            generation: Value of ``generation`` read before the work started;
                None stores unconditionally

        Returns:
            The stored entry, or None if an invalidation happened since
            ``generation`` was read
        """
        stamped = CacheEntry(
            key=key,
            rendered_output=entry.rendered_output,
            template_id=entry.template_id,
            fallback_path=tuple(entry.fallback_path),
            warnings=tuple(entry.warnings),
            created_at=self._clock(),
        )
        with self._lock:
            if generation is not None and generation != self._generation:
                return None
            self._entries[key] = stamped
        return stamped

    def invalidate_all(self, *_: Any) -> int:
        """Drop every entry.

        Accepts and ignores positional arguments so it can be registered
        directly as a store reload listener.

        Returns:
            Number of entries dropped
        """
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._generation += 1
            self._counters.invalidations += 1
            self._counters.last_invalidated_at = datetime.now(UTC)
        if self._logger:
            self._logger.cache().invalidated(dropped)
        return dropped

    def purge_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._expired(entry)]
            for key in expired:
                del self._entries[key]
            self._counters.evictions += len(expired)
        if expired and self._logger:
            self._logger.cache().expired(len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        """Snapshot of cache counters."""
        with self._lock:
            return CacheStats(
                hits=self._counters.hits,
                misses=self._counters.misses,
                entries=len(self._entries),
                evictions=self._counters.evictions,
                invalidations=self._counters.invalidations,
                ttl_seconds=self._ttl,
                last_invalidated_at=self._counters.last_invalidated_at,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.created_at >= self._ttl
