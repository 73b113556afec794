"""
Cache Gateway
=============

TTL key-value contract over a swappable store. Entries are keyed by
(subject_type, owner_id, domain, metric_kind) and are valid while
``now < expires_at``. Store failures never reach the caller: reads degrade
to misses and writes become no-ops.
"""

import asyncio
import copy
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from loguru import logger

from competitor_intel.core.errors import CacheUnavailable
from competitor_intel.core.models import CacheEntry, CompositeKey
from competitor_intel.utils.helpers import utcnow


class CacheStore(ABC):
    """Blocking persistence backend. Implementations raise CacheUnavailable on failure."""

    @abstractmethod
    def load(self, key: CompositeKey) -> Optional[CacheEntry]:
        """Return the stored entry for ``key`` regardless of expiry."""

    @abstractmethod
    def save(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``entry.key``."""

    @abstractmethod
    def delete(self, key: CompositeKey) -> bool:
        """Remove the entry for ``key``; True if one existed."""

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Remove every entry with ``expires_at <= now``; return how many."""


class MemoryCacheStore(CacheStore):
    """Process-local store for tests and one-off CLI runs."""

    def __init__(self):
        self._entries: dict[CompositeKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def load(self, key: CompositeKey) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            return copy.deepcopy(entry) if entry is not None else None

    def save(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = copy.deepcopy(entry)

    def delete(self, key: CompositeKey) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [k for k, e in self._entries.items() if not e.is_valid(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class CacheGateway:
    """
    Async front for a CacheStore.

    Store calls run in a worker thread so a slow database never blocks
    sibling provider fetches. ``clock`` is injectable for TTL tests.
    """

    def __init__(self, store: CacheStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def now(self) -> datetime:
        return self.clock()

    async def get(self, key: CompositeKey) -> Optional[CacheEntry]:
        """Return a valid entry, or None on miss, expiry or store failure."""
        try:
            entry = await asyncio.to_thread(self.store.load, key)
        except CacheUnavailable as e:
            logger.warning("Cache read failed for {}: {}", key.as_tuple(), e)
            return None

        if entry is None:
            return None
        if not entry.is_valid(self.now()):
            logger.debug("Cache entry expired for {}", key.as_tuple())
            return None
        return entry

    async def set(
        self,
        key: CompositeKey,
        payload: Any,
        ttl: timedelta,
        source: str = "",
    ) -> Optional[CacheEntry]:
        """Upsert ``payload`` under ``key``; last writer wins."""
        now = self.now()
        entry = CacheEntry(
            key=key,
            payload=payload,
            created_at=now,
            expires_at=now + ttl,
            source=source,
        )
        try:
            await asyncio.to_thread(self.store.save, entry)
        except CacheUnavailable as e:
            logger.warning("Cache write failed for {}: {}", key.as_tuple(), e)
            return None
        return entry

    async def invalidate(self, key: CompositeKey) -> bool:
        try:
            return await asyncio.to_thread(self.store.delete, key)
        except CacheUnavailable as e:
            logger.warning("Cache invalidation failed for {}: {}", key.as_tuple(), e)
            return False

    async def purge_expired(self) -> int:
        try:
            removed = await asyncio.to_thread(self.store.purge_expired, self.now())
        except CacheUnavailable as e:
            logger.warning("Cache purge failed: {}", e)
            return 0
        logger.info("Purged {} expired cache entries", removed)
        return removed
