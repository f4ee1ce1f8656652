"""
Small in-memory cache with per-entry expiry
"""
import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

ValueT = TypeVar("ValueT")


class TTLCache(Generic[ValueT]):
    """
    Maps key -> (value, expires_at). Expired entries are dropped on read.

    At most ``max_entries`` keys are held; a write into a full cache purges
    expired entries first, then evicts the entry closest to expiry.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 1024,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[ValueT, float]] = {}

    def get(self, key: Hashable) -> Optional[ValueT]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: Hashable, value: ValueT, ttl_seconds: Optional[float] = None):
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self._make_room()
        self._entries[key] = (value, self._clock() + ttl)

    def invalidate(self, key: Hashable):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _make_room(self):
        if self.purge_expired():
            return
        soonest = min(self._entries, key=lambda key: self._entries[key][1])
        del self._entries[soonest]

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
