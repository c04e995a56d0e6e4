"""
presigned_storage - Signed, expiring URLs for files in named storage buckets.

This library issues time-limited URLs for objects held in local directories,
memory or S3, and serves those URLs with the HTTP semantics file downloads need.

Key Features:
- HMAC-signed URLs bound to bucket, path and expiry
- Bucket registry with DNS-style name validation
- Pluggable storage backends (filesystem, in-memory, S3 with native presigning)
- Conditional requests (ETag, Last-Modified), single byte ranges, HEAD
- Gzip compression for compressible content types
- Extension and size policies, CORS origin allow-list

Quick Start:
    >>> from presigned_storage import PresignedConfig, create_with_server, local_backend
    >>>
    >>> config = PresignedConfig(secret="change-me", base_url="https://files.example.com")
    >>> registry, server = create_with_server(config)
    >>> registry.add_bucket("documents", local_backend("/srv/documents"))
    >>>
    >>> # Issue a URL valid for ten minutes
    >>> url = registry.temporary_url("documents", "report.pdf", 600)
    >>>
    >>> # Serve it
    >>> response = server.serve_from_request(uri, query, method="GET", headers=headers)

Compressed responses:
    Compressed bodies are sent with ``Content-Encoding: gzip`` and the
    compressed ``Content-Length`` by default. HEAD and 304 responses for
    such files carry ``Content-Encoding: gzip`` and no ``Content-Length``.
    Clients that expect gzip bytes under the raw type with the uncompressed
    length can restore that wire format with
    ``CompressionConfig(content_encoding_header=False)``.
"""

from .config import (
    BucketConfig,
    CompressionConfig,
    PresignedConfig,
    SecurityConfig,
    ServingConfig,
    SignatureConfig,
    create_config,
)
from .error_handling import (
    BucketNotFound,
    ErrorKind,
    ExpiredUrl,
    FileNotFound,
    InvalidBucketName,
    InvalidPath,
    InvalidSignature,
    PresignedUrlError,
)
from .factory import create_storage, create_with_server, local_backend, s3_backend
from .security import HmacSigner
from .server import FileResponse, FileServer
from .storage import (
    BucketNameValidator,
    BucketRegistry,
    FilesystemBackend,
    InMemoryBackend,
    S3Backend,
    StorageBackend,
    UrlComponents,
    get_storage_backend,
    list_storage_backends,
    register_storage_backend,
    unregister_storage_backend,
)

__version__ = "0.1.0"
__author__ = "radioflyer28"

__all__ = [
    # Configuration
    "PresignedConfig",
    "SignatureConfig",
    "ServingConfig",
    "CompressionConfig",
    "SecurityConfig",
    "BucketConfig",
    "create_config",
    # Signing
    "HmacSigner",
    # Storage
    "BucketRegistry",
    "BucketNameValidator",
    "UrlComponents",
    "StorageBackend",
    "FilesystemBackend",
    "InMemoryBackend",
    "S3Backend",
    "register_storage_backend",
    "unregister_storage_backend",
    "get_storage_backend",
    "list_storage_backends",
    # Serving
    "FileServer",
    "FileResponse",
    # Factories
    "create_storage",
    "create_with_server",
    "local_backend",
    "s3_backend",
    # Errors
    "ErrorKind",
    "PresignedUrlError",
    "BucketNotFound",
    "FileNotFound",
    "InvalidPath",
    "InvalidSignature",
    "ExpiredUrl",
    "InvalidBucketName",
    # Version info
    "__version__",
]
