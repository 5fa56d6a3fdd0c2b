"""
LoveAlbum Backend — Album Cache
================================

What:  In-memory TTL map in front of the single-album lookup.
How:   Wraps cachetools.TLRUCache. Each entry carries its own TTL; reads
       skip stale entries and a background task sweeps the whole map
       periodically so entries that are never read again do not linger.
       When the map is full the least recently used entry is evicted.
Who:   AlbumService (read-through on get, delete on every write),
       health route (stats), lifespan handler (sweep task).

The map lives in the process. Running several workers gives each worker
its own cache; writes only invalidate the entry in the worker that handled
them, so other workers may serve a stale album for up to the TTL.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, NamedTuple, Optional

from cachetools import TLRUCache

from app.config import settings

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


def _monotonic() -> float:
    return time.monotonic()


class AlbumCache:
    """Key → value map where every entry expires after a TTL (seconds)."""

    def __init__(self, default_ttl: Optional[int] = None, maxsize: Optional[int] = None):
        self.default_ttl = default_ttl if default_ttl is not None else settings.album_cache_ttl
        self._entries: TLRUCache = TLRUCache(
            maxsize=maxsize or settings.album_cache_max_size,
            ttu=_time_to_use,
            timer=_monotonic,
        )

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = _Entry(value, ttl)

    def get(self, key: str) -> Optional[Any]:
        """Returns the cached value, or None when absent or expired."""
        self._entries.expire()
        entry = self._entries.get(key)
        return None if entry is None else entry.value

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Removes every expired entry. Returns the number removed."""
        return len(self._entries.expire())

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return sorted(self._entries.keys())

    def stats(self) -> Dict[str, Any]:
        return {"size": len(self._entries), "keys": self.keys()}

    def __len__(self) -> int:
        return len(self._entries)


async def run_cleanup_loop(cache: "AlbumCache", interval: Optional[int] = None) -> None:
    """
    What:  Sweeps expired entries every `interval` seconds until cancelled.
    When:  Started as an asyncio task by the lifespan handler; cancelled on shutdown.
    """
    interval = interval or settings.cache_cleanup_interval
    logger.info("Album cache sweep started (every %ds)", interval)
    try:
        while True:
            await asyncio.sleep(interval)
            removed = cache.purge_expired()
            if removed:
                logger.debug("Album cache sweep removed %d expired entries", removed)
    except asyncio.CancelledError:
        logger.info("Album cache sweep stopped")
        raise


# ── Singleton Instance ────────────────────────────────────────────────────
album_cache = AlbumCache()
