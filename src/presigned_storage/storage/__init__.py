"""
Storage Layer
=============

Bucket registry, naming rules and pluggable storage backends.

Usage:
    from presigned_storage.storage import BucketRegistry
    from presigned_storage.storage.backends import FilesystemBackend

    registry = BucketRegistry(config)
    registry.add_bucket("documents", FilesystemBackend("/srv/documents"))
    url = registry.temporary_url("documents", "report.pdf", 3600)
"""

from .backends import (
    StorageBackend,
    FilesystemBackend,
    InMemoryBackend,
    S3Backend,
    register_storage_backend,
    unregister_storage_backend,
    get_storage_backend,
    list_storage_backends,
)
from .bucket_names import BucketNameValidator
from .registry import BucketRegistry, UrlComponents

__all__ = [
    # Registry
    "BucketRegistry",
    "UrlComponents",
    "BucketNameValidator",
    # Backends
    "StorageBackend",
    "FilesystemBackend",
    "InMemoryBackend",
    "S3Backend",
    "register_storage_backend",
    "unregister_storage_backend",
    "get_storage_backend",
    "list_storage_backends",
]
