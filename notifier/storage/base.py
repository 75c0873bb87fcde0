"""Key-value storage port.

Settings, stats and the background worker's pending set are each stored
as a single JSON blob under a well-known key. Writes are last-write-wins
and not transactional.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised by a store when the underlying medium fails."""


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent.

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one.

        Raises:
            StorageError: If the store cannot be written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        pass
