# File: capture_sync/features/meeting_sync/domain/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from capture_sync.features.segmentation.domain.models import Session

class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"

class SyncErrorKind(str, Enum):
    # Event source unreachable or returned garbage; retry later.
    UNAVAILABLE = "sync_unavailable"
    # Persisted history could not be read, so nothing was fetched.
    STORAGE_UNAVAILABLE = "storage_unavailable"

@dataclass
class MergeOutcome:
    sessions: List[Session]
    added: int = 0
    extended: int = 0

@dataclass
class SyncResult:
    """
    Report returned after a sync or a history write.
    `storage_degraded` means the sessions are correct in memory but were not persisted.
    """
    sessions: List[Session] = field(default_factory=list)
    error: Optional[SyncErrorKind] = None
    error_message: Optional[str] = None
    storage_degraded: bool = False
    added: int = 0
    extended: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and not self.storage_degraded
