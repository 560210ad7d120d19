# File: capture_sync/features/segmentation/service/segmenter.py
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from ..domain.models import Event, Session, SegmentationConfig

logger = logging.getLogger(__name__)


def sort_sessions(sessions: Iterable[Session]) -> List[Session]:
    """Most recent first."""
    return sorted(sessions, key=lambda s: s.start_time, reverse=True)


def dedupe_sessions(sessions: Iterable[Session]) -> List[Session]:
    """Keeps the first session seen for each session_id, preserving order."""
    seen = set()
    unique = []
    for session in sessions:
        if session.session_id in seen:
            continue
        seen.add(session.session_id)
        unique.append(session)
    return unique


class SessionSegmenter:
    """
    Splits an event stream into sessions using a time-gap heuristic.
    Stateless: the same input always yields the same output.
    """

    def __init__(self, config: Optional[SegmentationConfig] = None):
        self.config = config or SegmentationConfig()

    def segment(self, events: Iterable[Event]) -> List[Session]:
        ordered = sorted(events, key=lambda e: e.timestamp)
        sessions = self._group(ordered)
        sessions = dedupe_sessions(sort_sessions(sessions))

        kept = [s for s in sessions if self.is_substantial(s)]
        if len(kept) != len(sessions):
            logger.debug(f"Dropped {len(sessions) - len(kept)} sessions below {self.config.min_transcript_length} chars")
        return kept

    def is_substantial(self, session: Session) -> bool:
        return session.content_length >= self.config.min_transcript_length

    def _group(self, ordered: List[Event]) -> List[Session]:
        sessions: List[Session] = []
        current: Optional[Session] = None
        previous: Optional[Event] = None
        group_id = 0

        for event in ordered:
            if current is None or event.timestamp - previous.timestamp >= self.config.gap_threshold:
                if current is not None:
                    sessions.append(current)
                group_id += 1
                current = Session(
                    group_id=group_id,
                    start_time=event.timestamp,
                    end_time=event.timestamp,
                    transcript=event.render_line(),
                )
            else:
                current.end_time = event.timestamp
                current.transcript += event.render_line()
            previous = event

        if current is not None:
            sessions.append(current)
        return sessions


def segment(events: Iterable[Event], gap_threshold: timedelta = timedelta(minutes=5),
            min_transcript_length: int = 200) -> List[Session]:
    config = SegmentationConfig(gap_threshold=gap_threshold, min_transcript_length=min_transcript_length)
    return SessionSegmenter(config).segment(events)
