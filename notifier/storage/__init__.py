"""Pluggable key-value persistence for settings, stats and worker state."""

from notifier.storage.base import KeyValueStore, StorageError
from notifier.storage.memory import MemoryStore
from notifier.storage.sql import SQLStore

__all__ = [
    "KeyValueStore",
    "StorageError",
    "MemoryStore",
    "SQLStore",
]
