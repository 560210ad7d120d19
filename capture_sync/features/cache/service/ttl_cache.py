# File: capture_sync/features/cache/service/ttl_cache.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional

from capture_sync.core.errors import FetchFailure, StorageFailure
from capture_sync.features.kv_store.domain.interfaces import IKeyValueStore
from ..domain.models import CacheEntry, CachedValue, DEFAULT_TTL

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache:
    """
    Request-level cache wrapping any idempotent async fetch.

    - Fresh entries are served without touching the network.
    - A failed refetch falls back to whatever entry exists, fresh or stale.
    - Storage is only written after a successful fetch.

    Concurrent calls for the same key are not coalesced; both may fetch and
    the last write wins.
    """

    KEY_PREFIX = "cache_"

    def __init__(self, store: IKeyValueStore, default_ttl: timedelta = DEFAULT_TTL,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.default_ttl = default_ttl
        self.clock = clock

    def storage_key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Returns the stored entry without any freshness check."""
        try:
            record = self.store.get(self.storage_key(key))
        except StorageFailure as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if record is None:
            return None
        return CacheEntry.from_record(key, record)

    async def lookup(self, key: str, fetcher: Fetcher, ttl: Optional[timedelta] = None) -> CachedValue:
        ttl = self.default_ttl if ttl is None else ttl
        cached = self.peek(key)
        now = self.clock()

        # 1. Fresh hit
        if cached is not None and cached.is_fresh(now, ttl):
            return CachedValue(value=cached.value, stale=False, stored_at=cached.stored_at)

        # 2. Refetch
        try:
            value = await fetcher()
        except Exception as e:
            if cached is not None:
                reason = "rate limited" if isinstance(e, FetchFailure) and e.rate_limited else str(e)
                logger.warning(f"Fetch failed for {key} ({reason}); returning stale cached data")
                return CachedValue(value=cached.value, stale=True, stored_at=cached.stored_at)
            logger.error(f"Error fetching {key}: {e}")
            raise

        entry = CacheEntry(key=key, value=value, stored_at=self.clock())
        try:
            self.store.set(self.storage_key(key), entry.to_record())
        except StorageFailure as e:
            logger.warning(f"Could not persist cache entry for {key}: {e}")
        return CachedValue(value=value, stale=False, stored_at=entry.stored_at)

    async def fetch_cached(self, key: str, fetcher: Fetcher, ttl: Optional[timedelta] = None) -> Any:
        result = await self.lookup(key, fetcher, ttl)
        return result.value
