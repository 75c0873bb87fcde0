"""SQLModel-backed key-value store."""

from datetime import datetime

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from notifier.models.storage import StorageEntry
from notifier.storage.base import KeyValueStore, StorageError


class SQLStore(KeyValueStore):
    """Stores each key as a row in the storage_entries table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get(self, key: str) -> str | None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StorageEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StorageEntry, key)
                if entry is None:
                    entry = StorageEntry(key=key, value=value)
                else:
                    entry.value = value
                    entry.updated_at = datetime.utcnow()
                session.add(entry)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StorageEntry, key)
                if entry is not None:
                    session.delete(entry)
                    session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
