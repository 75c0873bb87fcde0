"""Database engine management for the SQL-backed key-value store."""

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine
from sqlmodel.pool import StaticPool


def normalize_database_url(database_url: str) -> str:
    """Convert postgresql:// to postgresql+psycopg:// for the psycopg v3 driver."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return database_url


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL.

    SQLite gets a single shared connection so in-memory databases survive
    across sessions; Postgres keeps pre-ping and SSL like a hosted database.
    """
    url = normalize_database_url(database_url)
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            connect_args={"sslmode": "require"},
        )

    # Register the storage table before create_all
    from notifier.models.storage import StorageEntry  # noqa: F401

    SQLModel.metadata.create_all(engine)
    return engine

