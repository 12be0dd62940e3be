"""Backend interface for durable key-value storage."""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the backing store's capacity."""


class Backend(ABC):
    """Abstract base class for synchronous string key-value stores."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored string for a key, or None if absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a string under a key, replacing any previous value."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        pass
