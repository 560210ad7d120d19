import logging
from typing import Any, Optional
from sqlalchemy.exc import SQLAlchemyError
from capture_sync.core.errors import StorageFailure
from .sql_models import KeyValueModel
from ..domain.interfaces import IKeyValueStore

logger = logging.getLogger(__name__)


class SqlKeyValueStore(IKeyValueStore):
    """Key-value store backed by the `kv_entries` table."""

    def __init__(self, session_factory=None):
        if session_factory is None:
            from capture_sync.core.database.connection import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[Any]:
        try:
            with self.session_factory() as db:
                row = db.get(KeyValueModel, key)
                return row.value if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read key '{key}': {e}")
            raise StorageFailure(f"Failed to read key '{key}': {e}") from e

    def set(self, key: str, value: Any) -> None:
        with self.session_factory() as db:
            try:
                row = db.get(KeyValueModel, key)
                if row is None:
                    db.add(KeyValueModel(key=key, value=value))
                else:
                    row.value = value
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to write key '{key}': {e}")
                raise StorageFailure(f"Failed to write key '{key}': {e}") from e

    def remove(self, key: str) -> None:
        with self.session_factory() as db:
            try:
                db.query(KeyValueModel).filter(KeyValueModel.key == key).delete()
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to remove key '{key}': {e}")
                raise StorageFailure(f"Failed to remove key '{key}': {e}") from e
