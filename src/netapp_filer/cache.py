"""Per-filer memoization of read accessors.

Entries are keyed by (kind, accessor, args). Every write on a filer
invalidates the entries of the kind it touched. Invalidation bumps a
generation counter, and a compute that started under an older
generation never stores its result, so a read racing a write cannot put
pre-write data back into the cache.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, tuple]


@dataclass
class CacheEntry:
    value: Any
    stored_at: float


class FilerCache:
    """TTL cache owned by one Filer.

    Args:
        enabled: When False every lookup computes and nothing is stored
        expiration: Default entry lifetime in seconds; 0 keeps entries
            until they are invalidated
        clock: Monotonic time source
    """

    def __init__(
        self,
        enabled: bool = True,
        expiration: float = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        if expiration < 0:
            raise ValueError("expiration must be >= 0")
        self.enabled = enabled
        self.expiration = expiration
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[Hashable, CacheEntry] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _generation(self, kind: str) -> tuple[int, int]:
        return self._epoch, self._generations.get(kind, 0)

    def _fresh(self, entry: CacheEntry, ttl: float) -> bool:
        return ttl == 0 or self._clock() - entry.stored_at < ttl

    def get_or_compute(self, key: CacheKey, compute: Callable[[], Any], ttl: Optional[float] = None) -> Any:
        """Return the cached value for key, computing it if absent or expired.

        A compute that raises leaves any existing entry untouched and
        propagates the error.
        """
        if not self.enabled:
            return compute()

        ttl = self.expiration if ttl is None else ttl
        kind = key[0]

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._fresh(entry, ttl):
                logger.debug(f"cache hit {key}")
                return entry.value
            generation = self._generation(kind)

        logger.debug(f"cache miss {key}")
        value = compute()

        with self._lock:
            if self._generation(kind) == generation:
                self._entries[key] = CacheEntry(value, self._clock())
            else:
                logger.debug(f"discarding {key}: invalidated while computing")
        return value

    def invalidate(self, kind: Optional[str] = None) -> int:
        """Drop entries of one kind, or every entry when kind is None.

        Returns the number of entries dropped.
        """
        with self._lock:
            if kind is None:
                self._epoch += 1
                dropped = len(self._entries)
                self._entries.clear()
            else:
                self._generations[kind] = self._generations.get(kind, 0) + 1
                keys = [k for k in self._entries if k[0] == kind]
                for k in keys:
                    del self._entries[k]
                dropped = len(keys)
        if dropped:
            logger.debug(f"invalidated {dropped} cache entries for {kind or 'all kinds'}")
        return dropped

    def clear(self) -> None:
        self.invalidate()
