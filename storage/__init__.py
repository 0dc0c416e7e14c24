"""
Storage module exports.

Content Store (key-value) and Blob Store (files) boundaries plus adapters.
"""

from .base import (
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    ContentStore,
    ContentStoreError,
    StorageError,
)
from .local import LocalBlobStore
from .memory import InMemoryContentStore, UnavailableContentStore
from .sqlite import SQLiteContentStore
from .types import DownloadProgress, DownloadResult, FileStat, ProgressCallback

__all__ = [
    "StorageError",
    "ContentStore",
    "ContentStoreError",
    "BlobStore",
    "BlobStoreError",
    "BlobNotFoundError",
    "SQLiteContentStore",
    "InMemoryContentStore",
    "UnavailableContentStore",
    "LocalBlobStore",
    "DownloadProgress",
    "DownloadResult",
    "FileStat",
    "ProgressCallback",
]
