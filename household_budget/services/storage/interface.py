"""
Abstract Storage Interface

DESIGN DECISION: The budget is persisted as whole JSON documents in a
key-value area, the way a browser keeps them in local storage.
This allows us to:
1. Keep documents on disk for the local app
2. Use in-memory storage for testing
3. Swap the backend without touching the budget logic

Reads never fail: a missing or unreadable value yields the caller's
default. Writes that fail are logged and dropped. There is no
transaction and no locking; the last writer wins.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog


logger = structlog.get_logger(__name__)


class KeyValueStore(ABC):
    """
    Abstract key-value area holding JSON text.

    Implementations only move text around; (de)serialization and the
    failure policy live here.
    """

    @abstractmethod
    def read_text(self, key: str) -> Optional[str]:
        """
        Read the raw text stored under a key.

        Returns:
            The stored text, or None if the key is absent

        Raises:
            OSError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write_text(self, key: str, text: str) -> None:
        """
        Store raw text under a key, replacing any previous value.

        Raises:
            OSError: If the backend cannot be written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing a missing key is a no-op."""
        pass

    def load(self, key: str, default: Any = None) -> Any:
        """
        Load and decode the value under a key.

        Returns `default` when the key is missing or its content is not
        valid JSON.
        """
        try:
            text = self.read_text(key)
        except (OSError, ValueError) as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return default

        if not text:
            return default

        try:
            return json.loads(text)
        except ValueError:
            logger.warning("storage_value_corrupt", key=key)
            return default

    def save(self, key: str, value: Any) -> bool:
        """
        Encode and store a value.

        Returns True on success. Failures are logged and discarded.
        """
        try:
            text = json.dumps(value, ensure_ascii=False)
            self.write_text(key, text)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            return False

    def preserve(self, key: str, suffix: str = ".corrupt") -> Optional[str]:
        """
        Copy the raw text under a key to `<key><suffix>`.

        Used before a value that could not be read is overwritten.

        Returns:
            The backup key, or None if there was nothing to copy or the
            copy failed
        """
        backup_key = f"{key}{suffix}"
        try:
            text = self.read_text(key)
            if not text:
                return None
            self.write_text(backup_key, text)
        except (OSError, ValueError) as e:
            logger.error("storage_preserve_failed", key=key, error=str(e))
            return None

        logger.warning("storage_value_preserved", key=key, backup_key=backup_key)
        return backup_key

    def remove(self, key: str) -> None:
        """Remove a key, logging failures."""
        try:
            self.delete(key)
        except OSError as e:
            logger.error("storage_delete_failed", key=key, error=str(e))


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class RemoteStorageError(StorageError):
    """A remote storage request failed (network, auth or quota)."""
    pass
