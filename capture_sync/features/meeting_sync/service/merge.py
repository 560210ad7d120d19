# File: capture_sync/features/meeting_sync/service/merge.py
from dataclasses import replace
from datetime import timedelta
from typing import List, Optional

from capture_sync.features.segmentation.domain.models import Session
from capture_sync.features.segmentation.service.segmenter import sort_sessions
from ..domain.models import MergeOutcome


def _line_key(line: str) -> str:
    # Lines start with a fixed-width UTC timestamp
    return line.split(" ", 1)[0]


def _continues(existing: Session, candidate: Session, gap: timedelta) -> bool:
    """True when `candidate` overlaps `existing` or sits within one gap of it."""
    return (candidate.start_time - existing.end_time < gap
            and existing.start_time - candidate.end_time < gap)


def _extend(existing: Session, candidate: Session) -> Session:
    """
    Folds `candidate` into `existing`. Lines already present (overlapping fetch
    windows return the boundary event twice) are not repeated. Enrichment fields
    of `existing` are kept.
    """
    seen = set(existing.lines())
    lines = existing.lines() + [line for line in candidate.lines() if line not in seen]
    lines.sort(key=_line_key)
    return replace(
        existing,
        start_time=min(existing.start_time, candidate.start_time),
        end_time=max(existing.end_time, candidate.end_time),
        transcript="".join(f"{line}\n" for line in lines),
    )


def merge_sessions(persisted: List[Session], new_sessions: List[Session], gap_threshold: timedelta,
                   min_transcript_length: int = 0) -> MergeOutcome:
    """
    Merges a fresh segmentation run into the stored history.

    Identity is `session_id` (derived from start time), never the run-local
    `group_id`, so a new 11:00 session is kept even if it shares group_id 1
    with a stored 10:00 session. A new session that continues a stored one is
    folded into it. Genuinely new sessions must still meet
    `min_transcript_length`.
    """
    merged: List[Session] = list(persisted)
    outcome = MergeOutcome(sessions=merged)

    for candidate in sorted(new_sessions, key=lambda s: s.start_time):
        target_idx: Optional[int] = None
        for idx, existing in enumerate(merged):
            if existing.session_id == candidate.session_id or _continues(existing, candidate, gap_threshold):
                target_idx = idx
                break

        if target_idx is not None:
            updated = _extend(merged[target_idx], candidate)
            if updated.transcript != merged[target_idx].transcript or updated.end_time != merged[target_idx].end_time:
                outcome.extended += 1
            merged[target_idx] = updated
        elif candidate.content_length >= min_transcript_length:
            merged.append(candidate)
            outcome.added += 1

    outcome.sessions = sort_sessions(merged)
    return outcome
