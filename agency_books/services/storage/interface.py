"""
Abstract Storage Interface

DESIGN DECISION: Persistence goes through a tiny string key-value
interface, the same shape as a browser's localStorage. This allows us to:
1. Keep the transaction list and the AI analysis as independent records
2. Use in-memory storage for testing
3. Swap the file-backed store for something else later
4. Keep business logic decoupled from storage implementation

The interface is intentionally minimal - get, set, remove.
Serialization is the caller's concern.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for a local string key-value store.

    Any storage implementation must implement these methods.
    A single process owns the store; no locking is expected.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Record identifier

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one in full.

        Args:
            key: Record identifier
            value: Text to store

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """
        Delete a record. Removing a missing key is not an error.

        Returns:
            True if something was removed

        Raises:
            StorageWriteError: If the delete fails
        """
        pass

    def contains(self, key: str) -> bool:
        """Check whether a record exists."""
        return self.get(key) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored data could not be read."""
    pass


class StorageWriteError(StorageError):
    """Data could not be written or removed."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
