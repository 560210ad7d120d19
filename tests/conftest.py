# File: tests/conftest.py

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# 1. Add project root to path
sys.path.append(os.getcwd())

# 2. Never touch the real data directory from tests
os.environ.setdefault("CAPTURE_SYNC_DATABASE_URL", "sqlite:///:memory:")

from capture_sync.core.common.enums import ContentType, DeviceType
from capture_sync.core.database.connection import init_db
from capture_sync.features.kv_store.data.memory import InMemoryKeyValueStore
from capture_sync.features.kv_store.data.repository import SqlKeyValueStore
from capture_sync.features.segmentation.domain.models import Event

BASE_TIME = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """A clock the test moves by hand."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """
    A fresh SQLite database per test, with all tables created.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'test_capture_sync.db'}")
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield factory

    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlKeyValueStore(session_factory)


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def make_event():
    """
    Builds an Event `minutes` after BASE_TIME.
    """
    def _make(minutes: float, text: str = "hello there", device: DeviceType = DeviceType.INPUT,
              kind: ContentType = ContentType.AUDIO) -> Event:
        return Event(timestamp=BASE_TIME + timedelta(minutes=minutes), text=text, device_type=device, kind=kind)

    return _make
