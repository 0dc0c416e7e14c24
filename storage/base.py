"""
Storage boundary for the provisioning subsystem.

Two external services sit under everything else:
- ContentStore: durable key-value persistence for small JSON blobs
  (model registry, style configuration, selected-model pointer)
- BlobStore: hierarchical file storage for large model artifacts and
  their small sidecar metadata files

Rules:
- Absence is never an error (get -> None, exists -> False)
- Writes are unconditional overwrites (last writer wins)
- Operational failures raise typed storage errors
- Every operation is a coroutine (all I/O is a suspension point)
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Union

from .types import FileStat, DownloadResult, ProgressCallback


class StorageError(RuntimeError):
    """Base class for storage layer failures."""


class ContentStoreError(StorageError):
    """Raised when the key-value store cannot be read or written."""


class BlobStoreError(StorageError):
    """Raised when file storage fails."""


class BlobNotFoundError(BlobStoreError):
    """Raised when a requested file does not exist."""


class ContentStore(ABC):
    """
    Abstract key-value boundary.
    Provisioning code must depend ONLY on this interface.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, overwriting any previous value."""
        raise NotImplementedError

    @abstractmethod
    async def remove(self, keys: Sequence[str]) -> None:
        """Remove every key in keys. Missing keys are ignored."""
        raise NotImplementedError

    @abstractmethod
    async def list_keys(self) -> List[str]:
        """Return all stored keys."""
        raise NotImplementedError


class BlobStore(ABC):
    """
    Abstract file storage boundary.

    Paths are plain strings so records persisted in the ContentStore can
    carry them verbatim.
    """

    @property
    @abstractmethod
    def document_dir(self) -> str:
        """Per-app private storage root."""
        raise NotImplementedError

    @property
    def models_dir(self) -> str:
        """Well-known directory holding one sub-directory per model."""
        return f"{self.document_dir}/models"

    @abstractmethod
    async def exists(self, path: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def mkdir(self, path: str) -> None:
        """Create path and any missing parents."""
        raise NotImplementedError

    @abstractmethod
    async def write_file(self, path: str, content: Union[str, bytes]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a text file. Raises BlobNotFoundError when missing."""
        raise NotImplementedError

    @abstractmethod
    async def stat(self, path: str) -> FileStat:
        """Raises BlobNotFoundError when missing."""
        raise NotImplementedError

    @abstractmethod
    async def download_file(
        self,
        url: str,
        dest_path: str,
        headers: Optional[Dict[str, str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> DownloadResult:
        """
        Transfer url into dest_path.

        Non-2xx responses are reported through DownloadResult.status_code
        and leave nothing at dest_path. Network failures raise.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_recursive(self, path: str) -> None:
        """Delete a file or a whole directory tree. Missing paths are ignored."""
        raise NotImplementedError
