import logging
from typing import List
from capture_sync.features.kv_store.domain.interfaces import IKeyValueStore
from capture_sync.features.segmentation.domain.models import Session

logger = logging.getLogger(__name__)


class SessionHistoryRepo:
    """Reads and writes the session list stored under a single key."""

    def __init__(self, store: IKeyValueStore, key: str = "sessions"):
        self.store = store
        self.key = key

    def load(self) -> List[Session]:
        raw = self.store.get(self.key) or []
        sessions = []
        for item in raw:
            try:
                sessions.append(Session.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable stored session: {e}")
        return sessions

    def save(self, sessions: List[Session]) -> None:
        self.store.set(self.key, [s.to_dict() for s in sessions])

    def clear(self) -> None:
        self.store.remove(self.key)
