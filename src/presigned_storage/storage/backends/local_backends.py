"""
Local Storage Backends
======================

Backends that serve objects from the local process:

- FilesystemBackend: a directory on disk (the default)
- InMemoryBackend: a dictionary, for tests and demos

Usage:
    from presigned_storage.storage.backends.local_backends import FilesystemBackend

    backend = FilesystemBackend("/srv/documents")
    if backend.exists("reports/q1.pdf"):
        with backend.read_stream("reports/q1.pdf") as stream:
            ...
"""

import logging
import mimetypes
import os
import threading
import time
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Dict, NamedTuple, Optional, Union

from ...error_handling import FileNotFound, InvalidPath
from .base import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    return mime_type or DEFAULT_MIME_TYPE


# =============================================================================
# Filesystem Backend Implementation
# =============================================================================


class FilesystemBackend(StorageBackend):
    """
    Filesystem-based storage backend.

    Object paths are resolved relative to ``base_dir``. Paths containing
    ``..`` segments, or resolving (through symlinks) outside the base
    directory, raise ``InvalidPath``.

    Attributes:
        base_dir: Root directory of the bucket
    """

    def __init__(self, base_dir: Union[str, Path]):
        """
        Initialize filesystem backend.

        Args:
            base_dir: Directory whose files are exposed by the bucket
        """
        self.base_dir = Path(base_dir)
        logger.debug(f"FilesystemBackend initialized at {self.base_dir}")

    def exists(self, path: str) -> bool:
        """Check if a regular file exists at path."""
        return self._resolve_path(path).is_file()

    def read(self, path: str) -> bytes:
        """Read file contents from disk."""
        full_path = self._existing_file(path)
        try:
            return full_path.read_bytes()
        except OSError as e:
            logger.warning(f"Failed to read {full_path}: {e}")
            raise FileNotFound(path) from e

    def read_stream(self, path: str) -> BinaryIO:
        """Open file for binary reading."""
        full_path = self._existing_file(path)
        try:
            return open(full_path, "rb")
        except OSError as e:
            logger.warning(f"Failed to open {full_path}: {e}")
            raise FileNotFound(path) from e

    def size(self, path: str) -> int:
        """Get file size from the filesystem."""
        return self._stat(path).st_size

    def mime_type(self, path: str) -> str:
        """Guess MIME type from the file name."""
        self._existing_file(path)
        return guess_mime_type(path)

    def last_modified(self, path: str) -> int:
        """Get file modification time in unix seconds."""
        return int(self._stat(path).st_mtime)

    def _stat(self, path: str) -> os.stat_result:
        full_path = self._existing_file(path)
        try:
            return full_path.stat()
        except OSError as e:
            raise FileNotFound(path) from e

    def _existing_file(self, path: str) -> Path:
        full_path = self._resolve_path(path)
        if not full_path.is_file():
            raise FileNotFound(path)
        return full_path

    def _resolve_path(self, path: str) -> Path:
        """
        Convert an object path to a filesystem path inside base_dir.

        Raises:
            InvalidPath: If the path traverses outside the base directory
        """
        parts = []
        for part in path.replace("\\", "/").split("/"):
            if part in ("", "."):
                continue
            if part == "..":
                raise InvalidPath(path)
            parts.append(part)

        if not self.base_dir.is_dir():
            raise InvalidPath(path)

        if not parts:
            return self.base_dir

        real_base = self.base_dir.resolve()
        full_path = self.base_dir.joinpath(*parts)

        # Symlinked parents must not escape the bucket root
        real_parent = full_path.parent.resolve()
        if real_parent != real_base and real_base not in real_parent.parents:
            raise InvalidPath(path)

        return full_path


# =============================================================================
# In-Memory Backend Implementation (for testing)
# =============================================================================


class _MemoryObject(NamedTuple):
    data: bytes
    content_type: str
    last_modified: int


class InMemoryBackend(StorageBackend):
    """
    In-memory storage backend.

    Stores objects in a dictionary. Useful for testing or for serving
    generated content. Data is lost when the backend is garbage collected.
    """

    def __init__(self):
        """Initialize in-memory backend."""
        self._objects: Dict[str, _MemoryObject] = {}
        self._lock = threading.Lock()
        logger.debug("InMemoryBackend initialized")

    def put(
        self,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        last_modified: Optional[int] = None,
    ) -> None:
        """Store an object (seeding helper; the serving surface never writes)."""
        obj = _MemoryObject(
            data=bytes(data),
            content_type=content_type or guess_mime_type(path),
            last_modified=int(time.time()) if last_modified is None else int(last_modified),
        )
        with self._lock:
            self._objects[self._key(path)] = obj
        logger.debug(f"Stored object {path} ({len(data)} bytes) in memory")

    def exists(self, path: str) -> bool:
        return self._key(path) in self._objects

    def read(self, path: str) -> bytes:
        return self._get(path).data

    def read_stream(self, path: str) -> BinaryIO:
        return BytesIO(self._get(path).data)

    def size(self, path: str) -> int:
        return len(self._get(path).data)

    def mime_type(self, path: str) -> str:
        obj = self._objects.get(self._key(path))
        return obj.content_type if obj else DEFAULT_MIME_TYPE

    def last_modified(self, path: str) -> int:
        obj = self._objects.get(self._key(path))
        return obj.last_modified if obj else 0

    def clear(self) -> int:
        """Clear all objects from memory. Returns count of objects cleared."""
        with self._lock:
            count = len(self._objects)
            self._objects.clear()
        return count

    def _get(self, path: str) -> _MemoryObject:
        obj = self._objects.get(self._key(path))
        if obj is None:
            raise FileNotFound(path)
        return obj

    @staticmethod
    def _key(path: str) -> str:
        return path.lstrip("/")


__all__ = [
    "FilesystemBackend",
    "InMemoryBackend",
    "guess_mime_type",
]
