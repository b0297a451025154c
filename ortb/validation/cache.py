"""
Validation Result Cache

In-memory, TTL-bounded store of validation results keyed by a fingerprint
of the request and the options that affect the validation outcome. Owned
by a single orchestrator; never shared through module state.
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ortb.config.settings import CacheConfig
from ortb.validation.errors import CacheError
from ortb.validation.models import ValidationResult


logger = logging.getLogger(__name__)

KEY_PREFIX = "validation"

# Share of entries evicted when the cache is full.
EVICTION_FRACTION = 0.1


@dataclass
class CacheEntry:
    """A cached validation result.

    Attributes:
        key: Fingerprint the entry is stored under
        result: Cached validation result
        expires_at: Epoch seconds after which the entry is a miss
        created_at: Epoch seconds when the entry was stored
        last_accessed: Epoch seconds of the last hit (drives LRU eviction)
        access_count: Number of hits plus the initial store
    """
    key: str
    result: ValidationResult
    expires_at: float
    created_at: float
    last_accessed: float
    access_count: int = 1

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class CacheStats:
    """Hit/miss accounting for a cache instance."""
    total_entries: int
    hit_count: int
    miss_count: int
    hit_rate: float


class ResultCache:
    """TTL cache for validation results.

    Entries expire ``ttl_seconds`` after they are stored. When the cache
    holds ``max_entries`` entries, the least recently used tenth of them is
    evicted before a new entry is added.

    Example:
        >>> cache = ResultCache(CacheConfig(ttl_seconds=60))
        >>> key = cache.generate_key(request, options)
        >>> cache.set(key, result)
        >>> cache.get(key)
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        """Initialize the cache.

        Args:
            config: Cache configuration (defaults to CacheConfig())
            clock: Source of the current time in epoch seconds
        """
        self.config = config or CacheConfig()
        self.ttl_seconds = self.config.ttl_seconds
        self.max_entries = self.config.max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def generate_key(self, request: Any, options: Any = None) -> str:
        """Generate a deterministic cache key.

        Only the options' cache fingerprint enters the key, so options that
        change reporting verbosity or timeouts share entries.

        Args:
            request: Bid request body (any JSON-serializable value)
            options: ValidationOptions, a plain dict, or None

        Returns:
            Cache key of the form ``validation:<sha256>``

        Raises:
            CacheError: If the request cannot be serialized
        """
        if options is None:
            fingerprint = {}
        elif hasattr(options, "cache_fingerprint"):
            fingerprint = options.cache_fingerprint()
        else:
            fingerprint = dict(options)

        try:
            canonical = json.dumps(
                {"request": request, "options": fingerprint},
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
                default=str,
            )
        except (TypeError, ValueError) as e:
            raise CacheError(f"Cannot fingerprint request: {e}")

        digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return f"{KEY_PREFIX}:{digest}"

    def get(self, key: str) -> Optional[ValidationResult]:
        """Return a copy of the cached result, or None on a miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return None

        entry.access_count += 1
        entry.last_accessed = now
        self._hits += 1
        return entry.result.model_copy(deep=True)

    def set(self, key: str, result: ValidationResult, ttl_seconds: Optional[float] = None) -> None:
        """Store a copy of ``result``, expiring ``ttl_seconds`` from now."""
        now = self._clock()
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds

        if key not in self._entries and len(self._entries) >= self.max_entries:
            self._evict()

        self._entries[key] = CacheEntry(
            key=key,
            result=result.model_copy(deep=True),
            expires_at=now + ttl,
            created_at=now,
            last_accessed=now,
        )

    def has(self, key: str) -> bool:
        """Check for a live entry without touching hit/miss statistics."""
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def cleanup(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        """Remove every entry and reset statistics."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        hit_rate = round(self._hits / total * 100, 2) if total else 0.0
        return CacheStats(
            total_entries=len(self._entries),
            hit_count=self._hits,
            miss_count=self._misses,
            hit_rate=hit_rate,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self) -> None:
        """Evict the least recently used entries to make room."""
        count = max(1, int(self.max_entries * EVICTION_FRACTION))
        by_age = sorted(self._entries.values(), key=lambda e: e.last_accessed)
        for entry in by_age[:count]:
            del self._entries[entry.key]
        logger.debug(f"Cache full, evicted {min(count, len(by_age))} entries")
