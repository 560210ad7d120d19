# File: capture_sync/core/database/connection.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from capture_sync.core.config.settings import settings

if "sqlite" in settings.DATABASE_URL:
    settings.ensure_dirs()

# check_same_thread=False is needed only for SQLite
connect_args = {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Creates all registered tables. Safe to call repeatedly."""
    from capture_sync.core.database.base import Base
    import capture_sync.features.kv_store.data.sql_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
