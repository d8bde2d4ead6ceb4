"""
Small in-process cache with a fixed time-to-live per entry.
"""
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

_MISSING = object()


class TTLCache:
    """
    Maps a key to (value, inserted_at). Entries older than ttl seconds are
    treated as absent and dropped on access or by purge_expired().
    """

    def __init__(self, ttl: float, clock: Optional[Callable[[], float]] = None):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def _expired(self, inserted_at: float, now: float) -> bool:
        return now - inserted_at >= self.ttl

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key, _MISSING)
        if entry is _MISSING:
            return default

        value, inserted_at = entry
        if self._expired(inserted_at, self._clock()):
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop all expired entries and return how many were removed."""
        now = self._clock()
        expired = [k for k, (_, inserted_at) in self._entries.items() if self._expired(inserted_at, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._entries)
