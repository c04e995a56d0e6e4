"""
Storage Backends
================

Pluggable backends exposing the objects of one bucket:

- FilesystemBackend: Local directory (no dependencies)
- InMemoryBackend: Dictionary storage for testing
- S3Backend: Amazon S3 / MinIO with native presigned URLs (requires boto3)

Backends are selected by name at configuration time through the registry:

    from presigned_storage.storage.backends import (
        register_storage_backend,
        get_storage_backend,
        list_storage_backends,
    )

    backend = get_storage_backend("local", base_dir="/srv/documents")

    # Register a custom backend
    register_storage_backend("gcs", MyGcsBackend)
    backend = get_storage_backend("gcs", bucket="my-files")
"""

import logging
from typing import Any, Dict, List, Type

from .base import StorageBackend
from .local_backends import FilesystemBackend, InMemoryBackend
from .s3_backend import BOTO3_AVAILABLE, S3Backend

logger = logging.getLogger(__name__)


# =============================================================================
# Storage Backend Registry
# =============================================================================

_storage_backend_registry: Dict[str, Type[StorageBackend]] = {}
_builtin_storage_backends = {"local", "memory", "s3"}


def _initialize_builtin_backends():
    """Initialize registry with built-in backends."""
    _storage_backend_registry["local"] = FilesystemBackend
    _storage_backend_registry["memory"] = InMemoryBackend

    if BOTO3_AVAILABLE:
        _storage_backend_registry["s3"] = S3Backend


# Initialize on module load
_initialize_builtin_backends()


def register_storage_backend(
    name: str, backend_class: Type[StorageBackend], force: bool = False
) -> None:
    """
    Register a custom storage backend.

    Args:
        name: Unique name for the backend (e.g., "gcs", "azure")
        backend_class: Class that implements StorageBackend
        force: If True, overwrite existing registration

    Raises:
        ValueError: If name already registered and force=False
        ValueError: If backend_class doesn't inherit from StorageBackend
    """
    if not isinstance(backend_class, type):
        raise ValueError(f"backend_class must be a class, got {type(backend_class)}")

    if not issubclass(backend_class, StorageBackend):
        raise ValueError(
            f"Backend class {backend_class.__name__} must inherit from StorageBackend"
        )

    if name in _storage_backend_registry and not force:
        raise ValueError(
            f"Storage backend '{name}' already registered. "
            f"Use force=True to overwrite or unregister_storage_backend() first."
        )

    _storage_backend_registry[name] = backend_class
    logger.info(f"Registered storage backend '{name}' ({backend_class.__name__})")


def unregister_storage_backend(name: str) -> bool:
    """
    Unregister a storage backend.

    Returns:
        True if backend was unregistered, False if not found
    """
    if name in _storage_backend_registry:
        del _storage_backend_registry[name]
        logger.info(f"Unregistered storage backend '{name}'")
        return True

    logger.warning(f"Storage backend '{name}' not found for unregistration")
    return False


def get_storage_backend(name: str, **options) -> StorageBackend:
    """
    Get a storage backend instance by name.

    Args:
        name: Name of the registered backend
        **options: Backend-specific constructor options

    Returns:
        Configured StorageBackend instance

    Raises:
        ValueError: If backend name not registered or options are rejected
    """
    if name not in _storage_backend_registry:
        available = sorted(_storage_backend_registry)
        raise ValueError(
            f"Unknown storage backend: '{name}'. Available backends: {available}"
        )

    backend_class = _storage_backend_registry[name]

    try:
        return backend_class(**options)
    except TypeError as e:
        raise ValueError(
            f"Failed to create storage backend '{name}' with options {sorted(options)}: {e}"
        ) from e


def list_storage_backends() -> List[Dict[str, Any]]:
    """
    List all registered storage backends.

    Returns:
        List of dictionaries with name, class and is_builtin keys
    """
    return [
        {
            "name": name,
            "class": backend_class.__name__,
            "is_builtin": name in _builtin_storage_backends,
        }
        for name, backend_class in sorted(_storage_backend_registry.items())
    ]


__all__ = [
    "StorageBackend",
    "FilesystemBackend",
    "InMemoryBackend",
    "S3Backend",
    "BOTO3_AVAILABLE",
    "register_storage_backend",
    "unregister_storage_backend",
    "get_storage_backend",
    "list_storage_backends",
]
