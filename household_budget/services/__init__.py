"""Services package."""

from household_budget.services.storage import (
    ConnectionError,
    GoogleDriveClient,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    NotFoundError,
    RemoteStorageError,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "GoogleDriveClient",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "NotFoundError",
    "RemoteStorageError",
    "StorageError",
]
