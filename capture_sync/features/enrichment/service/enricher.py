# File: capture_sync/features/enrichment/service/enricher.py
import logging
from typing import Callable, Optional

from capture_sync.core.errors import StorageFailure
from capture_sync.features.meeting_sync.domain.models import SyncResult
from capture_sync.features.meeting_sync.service.controller import SyncController
from capture_sync.features.segmentation.domain.models import Session
from ..domain.interfaces import ILLMAdapter
from ..domain import prompts

logger = logging.getLogger(__name__)


class MeetingEnricher:
    """
    Fills in the optional meeting fields (summary, participants) with an LLM
    and writes them back into the stored history.
    """

    def __init__(self, llm: ILLMAdapter, controller: SyncController, remediation_keep: int = 10):
        self.llm = llm
        self.controller = controller
        self.remediation_keep = remediation_keep

    def _find(self, session_id: str) -> Session:
        for session in self.controller.load():
            if session.session_id == session_id:
                return session
        raise KeyError(f"No meeting with id {session_id}")

    def summarize(self, session_id: str, prompt: str = prompts.DEFAULT_SUMMARY_PROMPT,
                  on_delta: Optional[Callable[[str], None]] = None) -> SyncResult:
        """Streams a summary; `on_delta` sees each chunk as it arrives."""
        session = self._find(session_id)

        # Known participants sharpen the summary
        if session.participants:
            prompt = f"{prompt}\n\nparticipants: {session.participants}"
        messages = [
            {"role": "system", "content": prompts.SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": f"{prompt}:\n\n{session.transcript}"},
        ]

        summary = ""
        for delta in self.llm.stream(messages):
            summary += delta
            if on_delta:
                on_delta(delta)

        logger.info(f"Generated summary for meeting {session_id} ({len(summary)} chars)")
        return self._store(session_id, summary=summary)

    def identify_participants(self, session_id: str,
                              prompt: str = prompts.DEFAULT_PARTICIPANTS_PROMPT) -> SyncResult:
        session = self._find(session_id)
        messages = [
            {"role": "system", "content": prompts.PARTICIPANTS_SYSTEM_PROMPT},
            {"role": "user", "content": f"{prompt}\n\ntranscript with device types:\n\n{session.transcript}"},
        ]
        participants = self.llm.complete(messages).strip() or prompts.NO_PARTICIPANTS
        logger.info(f"Identified participants for meeting {session_id}")
        return self._store(session_id, participants=participants)

    def _store(self, session_id: str, **fields) -> SyncResult:
        result = self.controller.update_session(session_id, **fields)
        if result.storage_degraded:
            # Make room by dropping older meetings, then try once more
            try:
                result.sessions = self.controller.persist_with_remediation(result.sessions, keep=self.remediation_keep)
                result.storage_degraded = False
                result.error_message = None
            except StorageFailure as e:
                logger.error(f"Failed to clean up storage: {e}")
                result.error_message = str(e)
        return result
