"""Tests for key-value stores."""

import pytest

from notifier.db.session import build_engine, normalize_database_url
from notifier.services.settings_store import SettingsStore
from notifier.storage.memory import MemoryStore
from notifier.storage.sql import SQLStore


@pytest.fixture
def sql_store() -> SQLStore:
    return SQLStore(build_engine("sqlite://"))


class TestMemoryStore:
    """Tests for the in-process store."""

    def test_set_get_delete(self):
        store = MemoryStore()

        assert store.get("missing") is None
        store.set("key", "value")
        assert store.get("key") == "value"
        store.delete("key")
        assert store.get("key") is None

    def test_delete_missing_is_noop(self):
        MemoryStore().delete("missing")


class TestSQLStore:
    """Tests for the SQLModel-backed store."""

    def test_set_get(self, sql_store):
        sql_store.set("notification_settings", '{"enabled": false}')

        assert sql_store.get("notification_settings") == '{"enabled": false}'

    def test_overwrite(self, sql_store):
        sql_store.set("key", "first")
        sql_store.set("key", "second")

        assert sql_store.get("key") == "second"

    def test_missing_key(self, sql_store):
        assert sql_store.get("missing") is None

    def test_delete(self, sql_store):
        sql_store.set("key", "value")
        sql_store.delete("key")
        sql_store.delete("key")

        assert sql_store.get("key") is None

    def test_settings_round_trip_through_sql(self, sql_store):
        SettingsStore(sql_store).update({"max_daily_notifications": 4})

        assert SettingsStore(sql_store).get().max_daily_notifications == 4


class TestDatabaseUrl:
    """Tests for URL normalization."""

    def test_postgres_uses_psycopg(self):
        url = normalize_database_url("postgresql://user:pw@host/db")

        assert url == "postgresql+psycopg://user:pw@host/db"

    def test_other_urls_unchanged(self):
        assert normalize_database_url("sqlite://") == "sqlite://"
