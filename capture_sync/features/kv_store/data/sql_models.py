from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON
from capture_sync.core.database.base import Base

def utc_now():
    return datetime.now(timezone.utc)

class KeyValueModel(Base):
    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
