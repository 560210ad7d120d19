import logging
from datetime import datetime
from typing import List, Optional

import httpx

from capture_sync.core.common.enums import ContentType, DeviceType
from capture_sync.core.errors import FetchFailure, ParseFailure
from capture_sync.features.segmentation.domain.models import Event, format_timestamp, parse_timestamp
from ..domain.interfaces import IEventSource

logger = logging.getLogger(__name__)

# Which content field carries the text for each item type
TEXT_FIELDS = {
    "audio": "transcription",
    "ocr": "text",
    "ui": "text",
}


class HttpEventSource(IEventSource):
    """Talks to the capture service's `/search` endpoint."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def fetch_events(self, start_time: datetime, end_time: Optional[datetime] = None,
                     limit: int = 1000, kind: ContentType = ContentType.AUDIO) -> List[Event]:
        params = {
            "content_type": kind.value,
            "start_time": format_timestamp(start_time),
            "limit": limit,
        }
        if end_time is not None:
            params["end_time"] = format_timestamp(end_time)

        url = f"{self.base_url}/search"
        logger.info(f"Searching capture service from {params['start_time']} (limit {limit})")
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url, params=params)
        except httpx.HTTPError as e:
            raise FetchFailure(f"Capture service unreachable: {e}", url=url) from e

        if response.status_code != 200:
            raise FetchFailure(
                f"Capture service returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
                rate_limited=response.status_code == 429,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ParseFailure(f"Capture service returned invalid JSON: {e}") from e

        items = body.get("data") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise ParseFailure("Capture service response has no 'data' list")

        events = []
        for item in items:
            event = self._to_event(item)
            if event is not None:
                events.append(event)
        logger.info(f"Retrieved {len(events)} events from capture service")
        return events

    @staticmethod
    def _to_event(item) -> Optional[Event]:
        """
        Normalises one search item: {"type": "Audio", "content": {"timestamp": ..., "device_type": ...}}.
        Items missing a timestamp are skipped.
        """
        if not isinstance(item, dict) or not isinstance(item.get("content"), dict):
            logger.warning(f"Skipping malformed search item: {item!r}")
            return None
        item_type = str(item.get("type", "")).lower()
        content = item["content"]

        raw_ts = content.get("timestamp")
        if not raw_ts:
            logger.warning("Skipping search item without timestamp")
            return None
        try:
            timestamp = parse_timestamp(raw_ts)
        except (TypeError, ValueError):
            logger.warning(f"Skipping search item with bad timestamp: {raw_ts!r}")
            return None

        try:
            kind = ContentType(item_type)
        except ValueError:
            kind = ContentType.AUDIO

        text = content.get(TEXT_FIELDS.get(item_type, "text")) or content.get("text") or ""
        return Event(
            timestamp=timestamp,
            text=str(text),
            device_type=DeviceType.parse(content.get("device_type")),
            kind=kind,
        )
