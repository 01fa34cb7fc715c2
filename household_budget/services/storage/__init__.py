"""
Storage Services Package

Provides the key-value storage interface, its local implementations and
the Google Drive client used by the remote backup mirror.
"""

from household_budget.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    NotFoundError,
    RemoteStorageError,
    StorageError,
)
from household_budget.services.storage.local import (
    JsonFileStore,
    MemoryStore,
)
from household_budget.services.storage.google_drive import (
    GoogleDriveClient,
    build_multipart_body,
)

__all__ = [
    # Interfaces
    "KeyValueStore",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "RemoteStorageError",
    "StorageError",
    # Local implementations
    "JsonFileStore",
    "MemoryStore",
    # Google Drive implementation
    "GoogleDriveClient",
    "build_multipart_body",
]
