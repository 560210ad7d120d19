# File: tests/core/test_database.py

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker

from capture_sync.core.errors import StorageFailure
from capture_sync.features.kv_store.data.repository import SqlKeyValueStore


def test_database_connection(session_factory):
    """
    Simple smoke test to ensure the test DB is reachable and the table exists.
    """
    with session_factory() as db:
        result = db.execute(text("SELECT 1"))
        assert result.scalar() == 1
        assert "kv_entries" in inspect(db.get_bind()).get_table_names()


def test_set_get_overwrite_remove(sql_store):
    assert sql_store.get("sessions") is None

    sql_store.set("sessions", [{"group_id": 1, "transcript": "a"}])
    assert sql_store.get("sessions") == [{"group_id": 1, "transcript": "a"}]

    # Overwrite, not append
    sql_store.set("sessions", [])
    assert sql_store.get("sessions") == []

    sql_store.remove("sessions")
    assert sql_store.get("sessions") is None

    # Removing an absent key is a no-op
    sql_store.remove("sessions")


def test_keys_are_independent(sql_store):
    sql_store.set("cache_https://a", {"data": 1, "timestamp": 10})
    sql_store.set("cache_https://b", {"data": 2, "timestamp": 20})

    assert sql_store.get("cache_https://a")["data"] == 1
    assert sql_store.get("cache_https://b")["data"] == 2


def test_missing_table_raises_storage_failure(tmp_path):
    """
    A database that was never initialised surfaces as StorageFailure, not a raw SQLAlchemy error.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    store = SqlKeyValueStore(sessionmaker(bind=engine))

    with pytest.raises(StorageFailure):
        store.get("sessions")
    with pytest.raises(StorageFailure):
        store.set("sessions", [])


def test_memory_store_isolates_values(memory_store):
    value = {"nested": [1, 2]}
    memory_store.set("k", value)
    value["nested"].append(3)

    assert memory_store.get("k") == {"nested": [1, 2]}
