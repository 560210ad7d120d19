# File: capture_sync/features/segmentation/domain/models.py
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from capture_sync.core.common.enums import ContentType, DeviceType

# Fractional seconds following HH:MM:SS
FRACTION_RE = re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)")

SPEAKER_LABELS = {
    DeviceType.INPUT: "you",
    DeviceType.OUTPUT: "others",
}


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC form, e.g. 2024-05-01T10:00:00.000000Z, so strings sort chronologically."""
    return to_utc(value).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    """
    Accepts RFC 3339 with any number of fractional digits. The capture service
    emits nanoseconds; fromisoformat before 3.11 only takes 3 or 6 digits.
    """
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    match = FRACTION_RE.search(text)
    if match:
        digits = match.group(1)[:6].ljust(6, "0")
        text = f"{text[:match.start()]}.{digits}{text[match.end():]}"
    return to_utc(datetime.fromisoformat(text))


@dataclass(frozen=True)
class Event:
    """
    One captured item (an audio transcription or an OCR snippet).
    Ordered by `timestamp`; duplicates are allowed.
    """
    timestamp: datetime
    text: str
    device_type: DeviceType = DeviceType.UNKNOWN
    kind: ContentType = ContentType.AUDIO

    def __post_init__(self):
        object.__setattr__(self, "timestamp", to_utc(self.timestamp))

    @property
    def speaker_label(self) -> str:
        return SPEAKER_LABELS.get(self.device_type, "unknown")

    def render_line(self) -> str:
        """'{timestamp} [{speaker}] {text}' plus a trailing newline."""
        return f"{format_timestamp(self.timestamp)} [{self.speaker_label}] {self.text}\n"


@dataclass
class Session:
    """
    A meeting: a contiguous run of events.

    `group_id` is only meaningful inside the segmentation run that produced it.
    `session_id` is derived from `start_time` and is stable across runs, so it
    is what merges and lookups key on.
    """
    group_id: int
    start_time: datetime
    end_time: datetime
    transcript: str
    name: Optional[str] = None
    participants: Optional[str] = None
    summary: Optional[str] = None

    def __post_init__(self):
        self.start_time = to_utc(self.start_time)
        self.end_time = to_utc(self.end_time)
        if self.start_time > self.end_time:
            raise ValueError(f"Session start ({self.start_time}) is after its end ({self.end_time}).")

    @property
    def session_id(self) -> str:
        return self.start_time.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @property
    def content_length(self) -> int:
        return len(self.transcript.replace("\n", ""))

    def lines(self):
        return [line for line in self.transcript.split("\n") if line]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["session_id"] = self.session_id
        data["start_time"] = format_timestamp(self.start_time)
        data["end_time"] = format_timestamp(self.end_time)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            group_id=int(data.get("group_id", 0)),
            start_time=parse_timestamp(data["start_time"]),
            end_time=parse_timestamp(data["end_time"]),
            transcript=data.get("transcript", ""),
            name=data.get("name"),
            participants=data.get("participants"),
            summary=data.get("summary"),
        )


@dataclass
class SegmentationConfig:
    """
    Tunables for the gap heuristic.
    A gap >= `gap_threshold` between consecutive events starts a new session;
    sessions shorter than `min_transcript_length` characters (newlines excluded) are noise.
    """
    gap_threshold: timedelta = field(default_factory=lambda: timedelta(minutes=5))
    min_transcript_length: int = 200

    def __post_init__(self):
        if self.gap_threshold <= timedelta(0):
            raise ValueError("gap_threshold must be positive.")
        if self.min_transcript_length < 0:
            raise ValueError("min_transcript_length cannot be negative.")
