"""
S3 Storage Backend
==================

S3-compatible storage backend. Supports Amazon S3, MinIO, and other
S3-compatible services, and issues native S3 presigned GET URLs so that
clients download straight from the object store.

Requirements:
    pip install presigned-storage[s3]
    # or
    pip install boto3

Usage:
    from presigned_storage.storage.backends.s3_backend import S3Backend

    # Amazon S3
    backend = S3Backend(bucket="my-files", region="us-east-1")

    # MinIO, serving through the generic signer instead of S3 presigning
    backend = S3Backend(
        bucket="local-files",
        endpoint_url="http://minio.internal:9000",
        access_key="minioadmin",
        secret_key="minioadmin",
        native_presign=False,
    )
"""

import logging
import time
from typing import Any, BinaryIO, Dict, Optional

from ...error_handling import FileNotFound
from .base import StorageBackend

logger = logging.getLogger(__name__)


# Check for boto3 availability
try:
    import boto3
    from botocore.exceptions import ClientError

    BOTO3_AVAILABLE = True
except ImportError:
    BOTO3_AVAILABLE = False
    boto3 = None
    ClientError = None

DEFAULT_MIME_TYPE = "application/octet-stream"
_NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")


class S3Backend(StorageBackend):
    """
    S3-compatible storage backend.

    Object paths map to S3 keys under an optional prefix.

    Attributes:
        bucket: S3 bucket name
        prefix: Optional key prefix (folder) for all objects
        region: AWS region (default: us-east-1)
        endpoint_url: Custom endpoint URL for S3-compatible services (MinIO)
        native_presign: Whether temporary URLs are delegated to S3 presigning
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        use_ssl: bool = True,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        native_presign: bool = True,
        client: Any = None,
        **kwargs,
    ):
        """
        Initialize S3 backend.

        Args:
            bucket: S3 bucket name
            prefix: Optional key prefix (e.g., "uploads/")
            region: AWS region (default: us-east-1)
            endpoint_url: Custom endpoint for S3-compatible services (MinIO)
            use_ssl: Use HTTPS (default: True)
            access_key: AWS access key (optional, falls back to credential chain)
            secret_key: AWS secret key (optional, falls back to credential chain)
            native_presign: Issue S3 presigned URLs from temporary_url (default: True)
            client: Pre-built boto3 S3 client (skips client construction)
            **kwargs: Additional boto3 client options
        """
        if not BOTO3_AVAILABLE:
            raise ImportError(
                "boto3 is required for S3 backend. "
                "Install with: pip install presigned-storage[s3] or pip install boto3"
            )

        self.bucket = bucket
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.region = region
        self.endpoint_url = endpoint_url
        self.native_presign = native_presign

        if client is None:
            client_kwargs = {
                "region_name": region,
                "use_ssl": use_ssl,
                **kwargs,
            }

            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url

            # Only add credentials if explicitly provided
            # Otherwise boto3 will use its credential chain
            if access_key and secret_key:
                client_kwargs["aws_access_key_id"] = access_key
                client_kwargs["aws_secret_access_key"] = secret_key

            client = boto3.client("s3", **client_kwargs)

        self._client = client

        logger.debug(
            f"S3Backend initialized: bucket={bucket}, prefix={self.prefix}, "
            f"region={region}, endpoint={endpoint_url}, native_presign={native_presign}"
        )

    def _get_s3_key(self, path: str) -> str:
        return f"{self.prefix}{path.lstrip('/')}"

    @staticmethod
    def _is_not_found(error: Exception) -> bool:
        code = error.response.get("Error", {}).get("Code", "")
        return code in _NOT_FOUND_CODES

    def _head(self, path: str) -> Dict[str, Any]:
        """HEAD the object, raising FileNotFound when missing."""
        try:
            return self._client.head_object(Bucket=self.bucket, Key=self._get_s3_key(path))
        except ClientError as e:
            if not self._is_not_found(e):
                logger.error(f"Failed to HEAD s3://{self.bucket}/{self._get_s3_key(path)}: {e}")
            raise FileNotFound(path) from e

    def exists(self, path: str) -> bool:
        try:
            self._head(path)
            return True
        except FileNotFound:
            return False

    def read(self, path: str) -> bytes:
        stream = self.read_stream(path)
        try:
            data = stream.read()
        finally:
            stream.close()

        logger.debug(f"Read s3://{self.bucket}/{self._get_s3_key(path)} ({len(data)} bytes)")
        return data

    def read_stream(self, path: str) -> BinaryIO:
        """
        Open the object body as a stream.

        The returned botocore StreamingBody is forward-only (not seekable).
        """
        s3_key = self._get_s3_key(path)

        try:
            response = self._client.get_object(Bucket=self.bucket, Key=s3_key)
        except ClientError as e:
            if not self._is_not_found(e):
                logger.error(f"Failed to read s3://{self.bucket}/{s3_key}: {e}")
            raise FileNotFound(path) from e

        return response["Body"]

    def size(self, path: str) -> int:
        return int(self._head(path).get("ContentLength", 0))

    def mime_type(self, path: str) -> str:
        try:
            return self._head(path).get("ContentType") or DEFAULT_MIME_TYPE
        except FileNotFound:
            return DEFAULT_MIME_TYPE

    def last_modified(self, path: str) -> int:
        try:
            modified = self._head(path).get("LastModified")
        except FileNotFound:
            return 0

        return int(modified.timestamp()) if modified is not None else 0

    def supports_native_presigned_url(self) -> bool:
        return self.native_presign

    def native_presigned_url(self, path: str, expires: int) -> Optional[str]:
        """
        Generate an S3 presigned GET URL valid until ``expires``.

        S3 takes a relative lifetime, so the remaining seconds are computed
        at call time (minimum one second).
        """
        if not self.native_presign:
            return None

        expires_in = max(int(expires) - int(time.time()), 1)

        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": self._get_s3_key(path)},
                ExpiresIn=expires_in,
            )
        except ClientError as e:
            logger.warning(f"S3 presigning failed for {path}, falling back to signer: {e}")
            return None

    def close(self) -> None:
        """Close S3 client (boto3 handles connection pooling automatically)."""
        pass


__all__ = [
    "S3Backend",
    "BOTO3_AVAILABLE",
]
