"""In-memory cache for price and market data lookups.

Entries are keyed by request kind and currency. A single freshness window
applies to every key; stale entries are kept so they can still be served
when a live fetch fails.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional

DEFAULT_CACHE_TTL_SECONDS = 10.0


class CacheKind(str, Enum):
    """Kinds of cached lookups."""
    PRICE = "price"
    MARKET = "market"


class CacheKey(NamedTuple):
    """Composite cache key: lookup kind plus currency code."""
    kind: CacheKind
    currency: str


@dataclass
class CacheEntry:
    """A cached value and the clock time it was stored at."""
    value: Any
    captured_at: float


class PriceCache:
    """Cache with a fixed freshness window shared by all keys."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize an empty cache.

        Args:
            ttl_seconds: Age below which an entry counts as fresh
            clock: Time source in seconds, injectable for tests
        """
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    def get_entry(self, key: CacheKey) -> Optional[CacheEntry]:
        """Get the raw entry for a key, or None when nothing was stored."""
        return self._entries.get(key)

    def age_seconds(self, key: CacheKey) -> Optional[float]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._clock() - entry.captured_at

    def is_fresh(self, key: CacheKey) -> bool:
        """Check whether a key holds an entry younger than the window."""
        age = self.age_seconds(key)
        return age is not None and age < self.ttl_seconds

    def get_fresh(self, key: CacheKey) -> Optional[Any]:
        """Get a value only if it is still within the freshness window."""
        if not self.is_fresh(key):
            return None
        return self._entries[key].value

    def get_any(self, key: CacheKey) -> Optional[Any]:
        """Get a value regardless of age. Used as a failure fallback."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: CacheKey, value: Any) -> CacheEntry:
        """Store a value, overwriting any previous entry for the key."""
        entry = CacheEntry(value=value, captured_at=self._clock())
        self._entries[key] = entry
        return entry

    def keys(self):
        return list(self._entries.keys())

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
