import logging
import threading
import time
from typing import Any, Callable

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class StatsCache:
    """
    Time-bounded cache in front of the platform aggregation.

    Entries are stored whole as {"data", "fetched_at"} in a Django cache
    backend and considered fresh while `clock() - fetched_at < ttl`. The
    backend timeout is the TTL as well, so stale entries also age out of the
    backend instead of piling up. Callers missing on the same key in this
    process wait for the first one's fetch instead of hitting upstream again.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        backend=None,
        clock: Callable[[], float] | None = None,
    ):
        self.ttl_seconds = ttl_seconds
        self._backend = backend
        self._clock = clock or time.time
        self._guard = threading.Lock()
        self._inflight: dict[str, list] = {}

    @property
    def backend(self):
        if self._backend is None:
            alias = getattr(settings, "PLATFORM_STATS_CACHE_ALIAS", "default")
            self._backend = caches[alias]
        return self._backend

    def _fresh_entry(self, key: str) -> dict[str, Any] | None:
        entry = self.backend.get(key)
        if not entry:
            return None
        age = self._clock() - entry.get("fetched_at", 0)
        if age < self.ttl_seconds:
            return entry
        return None

    def get(self, key: str) -> Any | None:
        entry = self._fresh_entry(key)
        return entry["data"] if entry else None

    def set(self, key: str, data: Any) -> None:
        self.backend.set(
            key,
            {"data": data, "fetched_at": self._clock()},
            timeout=self.ttl_seconds,
        )

    def invalidate(self, key: str) -> None:
        self.backend.delete(key)

    def _acquire_key_lock(self, key: str) -> threading.Lock:
        with self._guard:
            slot = self._inflight.get(key)
            if slot is None:
                slot = [threading.Lock(), 0]
                self._inflight[key] = slot
            slot[1] += 1
        slot[0].acquire()
        return slot[0]

    def _release_key_lock(self, key: str, lock: threading.Lock) -> None:
        lock.release()
        with self._guard:
            slot = self._inflight.get(key)
            if slot is not None:
                slot[1] -= 1
                if slot[1] <= 0:
                    del self._inflight[key]

    def get_or_fetch(self, key: str, fetch_fn: Callable[[], Any]) -> Any:
        entry = self._fresh_entry(key)
        if entry:
            logger.debug("Stats cache hit for %s", key)
            return entry["data"]

        lock = self._acquire_key_lock(key)
        try:
            # Another caller may have filled the entry while we waited.
            entry = self._fresh_entry(key)
            if entry:
                logger.debug("Stats cache filled while waiting for %s", key)
                return entry["data"]

            logger.debug("Stats cache miss for %s", key)
            data = fetch_fn()
            self.set(key, data)
            return data
        finally:
            self._release_key_lock(key, lock)


_stats_cache = None
_stats_cache_guard = threading.Lock()


def get_stats_cache() -> StatsCache:
    global _stats_cache
    with _stats_cache_guard:
        if _stats_cache is None:
            ttl = int(getattr(settings, "PLATFORM_STATS_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
            _stats_cache = StatsCache(ttl_seconds=ttl)
        return _stats_cache


def user_cache_key(user_id: int) -> str:
    return f"platform_stats:user:{user_id}"
