"""
Factory functions for wiring buckets, signer and file server from configuration.

Usage:
    config = create_config(settings)
    registry, server = create_with_server(config)

    url = registry.temporary_url("documents", "report.pdf", 600)
    response = server.serve_from_request(request_uri, request_query)
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .config import BucketConfig, PresignedConfig
from .security import HmacSigner
from .server.file_server import FileServer
from .storage.backends import FilesystemBackend, S3Backend, get_storage_backend
from .storage.backends.base import StorageBackend
from .storage.registry import BucketRegistry

logger = logging.getLogger(__name__)

# Short option names accepted in bucket settings for the s3 adapter
_S3_OPTION_ALIASES = {
    "key": "access_key",
    "secret": "secret_key",
    "endpoint": "endpoint_url",
}


def _local_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    options = dict(options)
    path = options.pop("path", None)
    if path is not None:
        options.setdefault("base_dir", path)
    return options


def _s3_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    return {_S3_OPTION_ALIASES.get(key, key): value for key, value in options.items()}


_OPTION_MAPPERS = {
    "local": _local_options,
    "s3": _s3_options,
}


def create_backend(bucket: BucketConfig) -> StorageBackend:
    """
    Build the backend described by a bucket configuration.

    Raises:
        ValueError: If the adapter is unknown or rejects its options
    """
    mapper = _OPTION_MAPPERS.get(bucket.adapter)
    options = mapper(bucket.options) if mapper else dict(bucket.options)
    return get_storage_backend(bucket.adapter, **options)


def create_storage(
    config: PresignedConfig, signer: Optional[HmacSigner] = None
) -> BucketRegistry:
    """
    Create a bucket registry populated from ``config.buckets``.

    Args:
        config: Presigned storage configuration
        signer: Signer to share with a file server (built from config if None)

    Returns:
        BucketRegistry with one backend per configured bucket
    """
    registry = BucketRegistry(config, signer)

    for name, bucket in config.buckets.items():
        registry.add_bucket(name, create_backend(bucket))
        logger.debug(f"Configured bucket '{name}' with adapter '{bucket.adapter}'")

    return registry


def create_with_server(
    config: PresignedConfig,
    signer: Optional[HmacSigner] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[BucketRegistry, FileServer]:
    """
    Create a registry and a file server sharing one signer.

    Returns:
        (registry, server) tuple
    """
    signer = signer or HmacSigner(config.secret, config.signature)
    registry = create_storage(config, signer)
    server = FileServer(registry, signer, config, logger)
    return registry, server


def local_backend(path: Union[str, Path]) -> FilesystemBackend:
    """Shorthand for a filesystem backend rooted at ``path``."""
    return FilesystemBackend(path)


def s3_backend(**options) -> S3Backend:
    """
    Shorthand for an S3 backend.

    Accepts the S3Backend arguments as well as the short option names used in
    bucket settings (``key``, ``secret``, ``endpoint``).
    """
    return S3Backend(**_s3_options(options))
