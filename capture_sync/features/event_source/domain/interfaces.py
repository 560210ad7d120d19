from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from capture_sync.core.common.enums import ContentType
from capture_sync.features.segmentation.domain.models import Event

class IEventSource(ABC):
    """
    Query interface of the capture service.
    Abstracts the transport so the sync controller only sees normalised Events.
    """
    @abstractmethod
    def fetch_events(self, start_time: datetime, end_time: Optional[datetime] = None,
                     limit: int = 1000, kind: ContentType = ContentType.AUDIO) -> List[Event]:
        """
        Returns events with timestamp >= start_time (and <= end_time when given).
        Order is not guaranteed. Raises FetchFailure when the service is unreachable.
        """
        pass
