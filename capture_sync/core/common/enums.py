# File: capture_sync/core/common/enums.py

from enum import Enum, unique

@unique
class DeviceType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw) -> "DeviceType":
        """Case-insensitive lookup; anything unrecognised maps to UNKNOWN."""
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN

@unique
class ContentType(str, Enum):
    AUDIO = "audio"
    OCR = "ocr"
    UI = "ui"
