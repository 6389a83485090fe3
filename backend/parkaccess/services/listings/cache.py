"""
In-memory listing cache: public listings, pending listings and one entry per detail view.

Reads go through get_or_load; mutations invalidate keys after they succeed. Entries
older than ttl_seconds are reloaded. A load that started before an invalidation of
its key is returned to its caller but not stored.
"""
import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class ListingCache:
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        self._ttl = ttl_seconds
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, Any]] = {}
        self._generations: dict[str, int] = {}

    def peek(self, key: str) -> Any | None:
        """Cached value if present and fresh, else None. Never loads."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if time.monotonic() - stored_at > self._ttl:
                del self._entries[key]
                return None
            return value

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], Any],
        *,
        keep: Callable[[Any], bool] | None = None,
    ) -> Any:
        """Cached value, or load it. A loaded value that fails keep() is returned but not stored."""
        cached = self.peek(key)
        if cached is not None:
            return cached
        with self._lock:
            generation = self._generations.get(key, 0)
        value = loader()
        if keep is not None and not keep(value):
            return value
        with self._lock:
            if self._generations.get(key, 0) == generation:
                self._entries[key] = (time.monotonic(), value)
            else:
                logger.debug("Cache key %s invalidated during load; not storing", key)
        return value

    def invalidate(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)
                self._generations[key] = self._generations.get(key, 0) + 1
        logger.debug("Invalidated cache keys: %s", ", ".join(keys))

    def clear(self) -> None:
        with self._lock:
            for key in list(self._entries):
                self._generations[key] = self._generations.get(key, 0) + 1
            self._entries.clear()
