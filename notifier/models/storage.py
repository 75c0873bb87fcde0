"""StorageEntry table backing the SQL key-value store."""

from datetime import datetime

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class StorageEntry(SQLModel, table=True):
    """One persisted JSON blob under a well-known key."""

    __tablename__ = "storage_entries"

    key: str = Field(primary_key=True, max_length=255)
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=datetime.utcnow)
