"""
In-memory TTL cache for API responses.

Entries expire both lazily (checked on read) and eagerly (an eviction timer
scheduled on the injected clock). Overwriting a key replaces its timer.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional

from api.clock import Cancellable, Clock, LoopClock

logger = logging.getLogger(f'{__name__}.TTLCache')


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


class TTLCache:
    """
    Key/value store with per-entry expiry.

    A miss is always reported as None, never as an error, so callers must not
    cache None values they expect to read back.
    """

    def __init__(self, default_ttl: float = 60.0, clock: Optional[Clock] = None):
        """
        Initialize cache.

        Args:
            default_ttl: Seconds an entry lives when set() gets no ttl
            clock: Time source and timer scheduler (defaults to the event loop)
        """
        self.default_ttl = default_ttl
        self._clock = clock or LoopClock()
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._timers: Dict[Hashable, Cancellable] = {}

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value and schedule its eviction.

        Args:
            key: Cache key
            value: Value to store
            ttl: Time-to-live override in seconds (uses default if None)
        """
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock.now(), ttl=ttl)

        self._cancel_timer(key)
        self._timers[key] = self._clock.call_later(ttl, lambda: self._evict(key))
        logger.debug(f"Cache set: {key} (ttl={ttl}s)")

    def get(self, key: Hashable) -> Optional[Any]:
        """
        Get a live value.

        Args:
            key: Cache key

        Returns:
            Stored value, or None if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None

        if entry.is_expired(self._clock.now()):
            self.invalidate(key)
            logger.debug(f"Cache expired: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return entry.value

    def invalidate(self, key: Hashable) -> bool:
        """Remove a single key. Returns True if an entry was removed."""
        self._cancel_timer(key)
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove every entry and cancel all pending eviction timers."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._entries.clear()
        logger.debug("Cache cleared")

    def _evict(self, key: Hashable) -> None:
        self._timers.pop(key, None)
        self._entries.pop(key, None)

    def _cancel_timer(self, key: Hashable) -> None:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock.now())

    def __len__(self) -> int:
        now = self._clock.now()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))
