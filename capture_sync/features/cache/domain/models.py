# File: capture_sync/features/cache/domain/models.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

DEFAULT_TTL = timedelta(hours=1)

@dataclass(frozen=True)
class CacheEntry:
    """
    A single cached response, keyed by exact request identity (URL + path).
    Persisted as {"data": ..., "timestamp": <epoch millis>}.
    """
    key: str
    value: Any
    stored_at: datetime

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.stored_at < ttl

    def to_record(self) -> dict:
        return {"data": self.value, "timestamp": int(self.stored_at.timestamp() * 1000)}

    @classmethod
    def from_record(cls, key: str, record: Any) -> Optional["CacheEntry"]:
        """Returns None for records that don't have the expected shape."""
        if not isinstance(record, dict) or "timestamp" not in record:
            return None
        try:
            stored_at = datetime.fromtimestamp(record["timestamp"] / 1000, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return None
        return cls(key=key, value=record.get("data"), stored_at=stored_at)

@dataclass(frozen=True)
class CachedValue:
    """What a lookup produced, and whether it is a stale fallback."""
    value: Any
    stale: bool
    stored_at: datetime
