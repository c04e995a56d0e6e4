"""
URL Signing
===========

HMAC signatures binding a bucket, an object path and an expiry timestamp.

Security Model:
- Canonical payload is "{bucket}:{path}:{expires}"
- HMAC keyed with the configured secret, algorithm from SignatureConfig
- Raw digest truncated to ``length`` bytes, hex encoded
- Verification uses constant-time comparison to prevent timing attacks

Signing is pure and holds no mutable state, so one signer can be shared by
any number of threads.
"""

import hmac
import logging
from typing import Optional

from .config import SignatureConfig

logger = logging.getLogger(__name__)


class HmacSigner:
    """HMAC-based signer for presigned URLs."""

    def __init__(self, secret: str, config: Optional[SignatureConfig] = None):
        """
        Initialize the signer.

        Args:
            secret: Signing key. Never logged.
            config: Signature configuration (defaults to sha256 / 16 bytes)
        """
        if not secret:
            raise ValueError("secret must be a non-empty string")

        self._secret = secret.encode("utf-8")
        self.config = config or SignatureConfig()
        self._digestmod = self.config.algorithm

        logger.debug(
            f"URL signer initialized: algorithm={self.config.algorithm}, "
            f"length={self.config.length}"
        )

    @staticmethod
    def _create_signature_payload(bucket: str, path: str, expires: int) -> bytes:
        return f"{bucket}:{path}:{int(expires)}".encode("utf-8")

    def sign(self, bucket: str, path: str, expires: int) -> str:
        """
        Create the signature for a bucket/path/expiry triple.

        Args:
            bucket: Bucket name
            path: Object path within the bucket
            expires: Expiry as unix seconds

        Returns:
            Hex string of ``2 * length`` characters
        """
        payload = self._create_signature_payload(bucket, path, expires)
        digest = hmac.new(self._secret, payload, self._digestmod).digest()
        return digest[: self.config.length].hex()

    def verify(self, bucket: str, path: str, expires: int, signature: str) -> bool:
        """
        Verify a signature in constant time.

        Returns:
            True if signature is valid, False otherwise
        """
        expected = self.sign(bucket, path, expires)
        try:
            return hmac.compare_digest(expected, signature)
        except TypeError:
            # compare_digest rejects non-ASCII str input
            return False

    def __repr__(self) -> str:
        return f"HmacSigner(algorithm={self.config.algorithm!r}, length={self.config.length})"
