# File: capture_sync/features/meeting_sync/service/controller.py
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from capture_sync.core.common.enums import ContentType
from capture_sync.core.errors import FetchFailure, ParseFailure, StorageFailure
from capture_sync.features.event_source.domain.interfaces import IEventSource
from capture_sync.features.segmentation.domain.models import Session, SegmentationConfig
from capture_sync.features.segmentation.service.segmenter import SessionSegmenter, sort_sessions
from ..data.history_repo import SessionHistoryRepo
from ..domain.models import SyncErrorKind, SyncResult, SyncState
from .merge import merge_sessions

logger = logging.getLogger(__name__)

ENRICHABLE_FIELDS = {"name", "participants", "summary"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncController:
    """
    Incremental meeting history sync.
    Reads stored sessions, pulls only the events newer than the latest one,
    segments them, merges and persists.

    The controller reports its state but does not guard re-entry; callers
    must not start a sync while `state` is SYNCING.
    """

    def __init__(self, event_source: IEventSource, history: SessionHistoryRepo,
                 config: Optional[SegmentationConfig] = None,
                 lookback: timedelta = timedelta(days=7),
                 fetch_limit: int = 1000,
                 clock: Callable[[], datetime] = utc_now):
        self.event_source = event_source
        self.history = history
        self.config = config or SegmentationConfig()
        self.lookback = lookback
        self.fetch_limit = fetch_limit
        self.clock = clock
        self._state = SyncState.IDLE

    @property
    def state(self) -> SyncState:
        return self._state

    def load(self) -> List[Session]:
        return sort_sessions(self.history.load())

    def compute_fetch_start(self, persisted: List[Session]) -> datetime:
        # persisted is sorted newest-first; resume from the end of the newest one
        if persisted:
            return persisted[0].end_time
        return self.clock() - self.lookback

    def sync(self, persisted: Optional[List[Session]] = None) -> SyncResult:
        self._state = SyncState.SYNCING
        try:
            return self._sync(persisted)
        finally:
            self._state = SyncState.IDLE

    def _sync(self, persisted: Optional[List[Session]]) -> SyncResult:
        if persisted is None:
            try:
                persisted = self.load()
            except StorageFailure as e:
                logger.error(f"Could not read stored sessions: {e}")
                return SyncResult(error=SyncErrorKind.STORAGE_UNAVAILABLE, error_message=str(e))

        # 1. Where to resume
        fetch_start = self.compute_fetch_start(persisted)
        logger.info(f"Syncing meetings from {fetch_start.isoformat()}")

        # 2. Pull new events
        try:
            events = self.event_source.fetch_events(fetch_start, limit=self.fetch_limit, kind=ContentType.AUDIO)
        except (FetchFailure, ParseFailure) as e:
            logger.error(f"Sync unavailable: {e}")
            return SyncResult(sessions=list(persisted), error=SyncErrorKind.UNAVAILABLE, error_message=str(e))

        # 3. Segment. Short fragments are kept here: a short tail can still
        #    continue a stored meeting. The length filter applies during merge.
        raw_config = replace(self.config, min_transcript_length=0)
        new_sessions = SessionSegmenter(raw_config).segment(events)

        # 4-5. Merge by stable identity, newest first
        outcome = merge_sessions(persisted, new_sessions, self.config.gap_threshold,
                                 self.config.min_transcript_length)
        logger.info(f"Processed {len(events)} events: {outcome.added} new meetings, {outcome.extended} extended")

        # 6. Persist
        result = SyncResult(sessions=outcome.sessions, added=outcome.added, extended=outcome.extended)
        try:
            self.history.save(outcome.sessions)
        except StorageFailure as e:
            logger.warning(f"Meetings merged but could not be stored: {e}")
            result.storage_degraded = True
            result.error_message = str(e)
        return result

    def persist_with_remediation(self, sessions: List[Session], keep: int = 10) -> List[Session]:
        """
        Writes `sessions`; if storage refuses, keeps only the `keep` most recent
        and retries once. Returns what was stored. Raises StorageFailure if the
        retry also fails.
        """
        ordered = sort_sessions(sessions)
        try:
            self.history.save(ordered)
            return ordered
        except StorageFailure as e:
            logger.warning(f"Storage write failed ({e}); keeping the {keep} most recent meetings")
        trimmed = ordered[:keep]
        self.history.save(trimmed)
        return trimmed

    def update_session(self, session_id: str, **fields) -> SyncResult:
        """Sets name/participants/summary on one stored session and persists."""
        unknown = set(fields) - ENRICHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        sessions = self.load()
        for idx, session in enumerate(sessions):
            if session.session_id == session_id:
                sessions[idx] = replace(session, **fields)
                break
        else:
            raise KeyError(f"No meeting with id {session_id}")

        result = SyncResult(sessions=sessions)
        try:
            self.history.save(sessions)
        except StorageFailure as e:
            logger.warning(f"Meeting updated but could not be stored: {e}")
            result.storage_degraded = True
            result.error_message = str(e)
        return result

    def clear(self) -> None:
        self.history.clear()
        logger.info("Cleared stored meetings")
