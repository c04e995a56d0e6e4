"""
Bucket Registry
===============

Maps bucket names to storage backends and converts between
(bucket, path, expiry) triples and signed URLs.

Usage:
    registry = BucketRegistry(config, signer)
    registry.add_bucket("documents", FilesystemBackend("/srv/documents"))
    registry.freeze()

    url = registry.temporary_url("documents", "reports/q1.pdf", 600)
    components = registry.parse_url(url)  # unverified
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Union
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from ..config import PresignedConfig
from ..error_handling import BucketNotFound
from ..security import HmacSigner
from ..utils import split_bucket_path, strip_base_path
from .backends.base import StorageBackend
from .bucket_names import BucketNameValidator

logger = logging.getLogger(__name__)

Expiration = Union[int, datetime]


@dataclass(frozen=True)
class UrlComponents:
    """Structurally valid, UNVERIFIED decomposition of a signed URL."""

    bucket: str
    path: str
    expires: int
    signature: str


class BucketRegistry:
    """
    Registry of named buckets.

    The registry is meant to be populated at startup and then read by
    request handlers. Registration is guarded by a lock, and ``freeze()``
    rejects any further registration.
    """

    def __init__(self, config: PresignedConfig, signer: Optional[HmacSigner] = None):
        self.config = config
        self.signer = signer or HmacSigner(config.secret, config.signature)
        self._buckets: Dict[str, StorageBackend] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def add_bucket(self, name: str, backend: StorageBackend, validate: bool = True) -> None:
        """
        Register a backend under a bucket name. Re-registering a name replaces it.

        Args:
            name: Bucket name
            backend: Backend serving the bucket's objects
            validate: Check the name against BucketNameValidator (default True)

        Raises:
            InvalidBucketName: If validate is True and the name is invalid
            RuntimeError: If the registry has been frozen
        """
        if validate:
            BucketNameValidator.validate(name)

        with self._lock:
            if self._frozen:
                raise RuntimeError(f"Cannot add bucket '{name}': registry is frozen")
            self._buckets[name] = backend

        logger.debug(f"Registered bucket '{name}' ({type(backend).__name__})")

    def get_bucket(self, name: str) -> StorageBackend:
        try:
            return self._buckets[name]
        except KeyError:
            raise BucketNotFound(name) from None

    def has_bucket(self, name: str) -> bool:
        return name in self._buckets

    def list_buckets(self) -> List[str]:
        return sorted(self._buckets)

    def freeze(self) -> None:
        """Reject further registrations."""
        with self._lock:
            self._frozen = True
        logger.info(f"Bucket registry frozen with {len(self._buckets)} bucket(s)")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def temporary_url(
        self, bucket: str, path: str, expiration: Optional[Expiration] = None
    ) -> str:
        """
        Issue a signed URL for an object.

        Args:
            bucket: Registered bucket name
            path: Object path within the bucket
            expiration: Relative lifetime in seconds (clamped to
                ``serving.max_ttl``), an absolute datetime (used as given),
                or None for ``serving.default_ttl``

        Returns:
            Backend-native presigned URL when the backend offers one,
            otherwise a URL signed with this registry's signer

        Raises:
            BucketNotFound: If the bucket is not registered
        """
        backend = self.get_bucket(bucket)
        expires = self._resolve_expiration(expiration)
        # Sign the path exactly as it will appear in the URL
        path = path.lstrip("/")

        if backend.supports_native_presigned_url():
            native_url = backend.native_presigned_url(path, expires)
            if native_url is not None:
                return native_url

        signature = self.signer.sign(bucket, path, expires)
        return self.build_url(bucket, path, expires, signature)

    def build_url(self, bucket: str, path: str, expires: int, signature: str) -> str:
        base_url = self.config.base_url.rstrip("/")
        query = urlencode(
            {
                self.config.signature.expires_param: expires,
                self.config.signature.signature_param: signature,
            }
        )
        return f"{base_url}/{bucket}/{quote(path.lstrip('/'), safe='/')}?{query}"

    def __repr__(self) -> str:
        return f"BucketRegistry(buckets={self.list_buckets()}, frozen={self._frozen})"

    def parse_url(self, url: str) -> Optional[UrlComponents]:
        """
        Decompose a signed URL without verifying it.

        The result must still go through HmacSigner.verify (or the file
        server) before it is trusted.

        Returns:
            UrlComponents, or None if the URL does not have the signed-URL shape
        """
        try:
            parts = urlsplit(url)
        except ValueError:
            return None

        if not parts.path or not parts.query:
            return None

        base_path = urlsplit(self.config.base_url).path
        split = split_bucket_path(strip_base_path(parts.path, base_path))
        if split is None:
            return None

        bucket, path = split
        query = parse_qs(parts.query, keep_blank_values=True)

        expires_values = query.get(self.config.signature.expires_param)
        signature_values = query.get(self.config.signature.signature_param)
        if not expires_values or not signature_values:
            return None

        if len(expires_values) != 1 or len(signature_values) != 1:
            return None

        try:
            expires = int(expires_values[0])
        except ValueError:
            return None

        signature = signature_values[0]
        if expires == 0 or signature == "":
            return None

        return UrlComponents(bucket=bucket, path=path, expires=expires, signature=signature)

    def _resolve_expiration(self, expiration: Optional[Expiration]) -> int:
        # Absolute expirations are deliberately not clamped to max_ttl
        if isinstance(expiration, datetime):
            return int(expiration.timestamp())

        if expiration is None:
            expiration = self.config.serving.default_ttl

        ttl = min(int(expiration), self.config.serving.max_ttl)
        return int(time.time()) + ttl
