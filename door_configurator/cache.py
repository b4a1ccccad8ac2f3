"""
Time-bounded cache used by the catalog repository.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Maps keys to values that expire ``ttl_seconds`` after being stored.

    The clock is injectable so expiry can be tested without sleeping.
    A TTL of zero disables caching.
    """

    def __init__(self, ttl_seconds: float = 600.0,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        """Cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any):
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or compute, store and return it."""
        value = self.get(key)
        if value is not None:
            logger.debug("Cache hit for %r", key)
            return value
        logger.debug("Cache miss for %r", key)
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None):
        """Drop one key, or everything when no key is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
