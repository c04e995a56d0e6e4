"""
Abstract Base Class for Storage Backends
========================================

Defines the capability interface every bucket backend must implement.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class StorageBackend(ABC):
    """
    Abstract base class for bucket storage backends.

    A backend exposes read-only access to the objects of one bucket:
    - Local filesystem directories
    - S3-compatible object stores
    - In-memory dictionaries (testing)

    Implementations must normalize their own I/O errors to ``FileNotFound``
    (missing or unreadable objects) or ``InvalidPath`` (paths escaping the
    bucket root). Implementations must be safe for concurrent reads.
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """
        Check if an object exists.

        Args:
            path: Object path relative to the bucket root

        Returns:
            True if the object exists, False otherwise
        """
        pass

    @abstractmethod
    def read(self, path: str) -> bytes:
        """
        Read the entire object into memory.

        Raises:
            FileNotFound: If the object doesn't exist
        """
        pass

    @abstractmethod
    def read_stream(self, path: str) -> BinaryIO:
        """
        Open the object as a binary stream.

        The caller owns the returned stream and must close it.

        Raises:
            FileNotFound: If the object doesn't exist
        """
        pass

    @abstractmethod
    def size(self, path: str) -> int:
        """
        Get object size in bytes.

        Raises:
            FileNotFound: If the object doesn't exist
        """
        pass

    @abstractmethod
    def mime_type(self, path: str) -> str:
        """Best-effort MIME type, 'application/octet-stream' when unknown."""
        pass

    @abstractmethod
    def last_modified(self, path: str) -> int:
        """Last modification time as unix seconds, 0 when unknown."""
        pass

    def supports_native_presigned_url(self) -> bool:
        """Whether this backend can issue its own presigned URLs."""
        return False

    def native_presigned_url(self, path: str, expires: int) -> Optional[str]:
        """
        Issue a backend-native presigned URL.

        Args:
            path: Object path relative to the bucket root
            expires: Expiry as unix seconds

        Returns:
            URL string, or None to fall back to the generic signer
        """
        return None

    def close(self) -> None:
        """
        Close and clean up any resources.

        Default implementation does nothing. Override in backends that
        hold connections or other resources.
        """
        pass

    def __enter__(self):
        """Support context manager protocol."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure resources are cleaned up."""
        self.close()
        return False
