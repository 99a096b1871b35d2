"""In-memory tier of the reference data cache."""

import threading
import time
from typing import Callable, Generic, Optional, TypeVar

from lookthrough.domain.models import CacheEntry

T = TypeVar("T")


class MemoryCache(Generic[T]):
    """
    Process-local map of symbol -> CacheEntry with a per-entry TTL.

    Expiry uses a monotonic clock so wall-clock jumps don't resurrect or
    kill entries. Expired entries are dropped lazily on read.
    """

    def __init__(
        self,
        default_ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # symbol -> (entry, expires_at)
        self._entries: dict[str, tuple[CacheEntry[T], float]] = {}

    def get(self, symbol: str) -> Optional[CacheEntry[T]]:
        with self._lock:
            item = self._entries.get(symbol)
            if item is None:
                return None
            entry, expires_at = item
            if self._clock() >= expires_at:
                del self._entries[symbol]
                return None
            return entry

    def put(self, entry: CacheEntry[T], ttl_seconds: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[entry.symbol] = (entry, self._clock() + ttl)

    def invalidate(self, symbol: str) -> bool:
        with self._lock:
            return self._entries.pop(symbol, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
