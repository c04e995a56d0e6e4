"""
Error Taxonomy for Presigned Storage
====================================

Every error raised by the library derives from ``PresignedUrlError`` and
carries an ``ErrorKind``. The serving pipeline works in terms of the kind:
validation steps return an ``ErrorKind`` instead of raising, and backend
errors are converted to their kind at a single boundary in the file server.
"""

import enum
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    """Reasons a presigned request or registration can fail."""

    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED_URL = "expired_url"
    BUCKET_NOT_FOUND = "bucket_not_found"
    FILE_NOT_FOUND = "file_not_found"
    INVALID_PATH = "invalid_path"
    INVALID_BUCKET_NAME = "invalid_bucket_name"
    BAD_REQUEST = "bad_request"


class PresignedUrlError(Exception):
    """Base exception for all presigned storage errors."""

    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(message)

        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        logger.debug(
            f"{type(self).__name__}: {message}"
            + (f" ({context_str})" if context_str else "")
        )


class BucketNotFound(PresignedUrlError):
    """Raised when a bucket name is not registered."""

    kind = ErrorKind.BUCKET_NOT_FOUND

    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f'Bucket "{bucket}" not found.', {"bucket": bucket})


class FileNotFound(PresignedUrlError):
    """Raised by backends when an object does not exist or cannot be read."""

    kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, path: str):
        self.path = path
        super().__init__(f'File "{path}" not found.', {"path": path})


class InvalidPath(PresignedUrlError):
    """Raised by filesystem-style backends when a path escapes the base directory."""

    kind = ErrorKind.INVALID_PATH

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f'Invalid path "{path}". Path traversal detected.', {"path": path}
        )


class InvalidSignature(PresignedUrlError):
    kind = ErrorKind.INVALID_SIGNATURE

    def __init__(self):
        super().__init__("Invalid signature.")


class ExpiredUrl(PresignedUrlError):
    kind = ErrorKind.EXPIRED_URL

    def __init__(self, expires: Optional[int] = None):
        self.expires = expires
        super().__init__(
            "URL has expired.", {"expires": expires} if expires is not None else None
        )


class InvalidBucketName(PresignedUrlError):
    """Raised at registration time when a bucket name breaks the naming rules."""

    kind = ErrorKind.INVALID_BUCKET_NAME

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(
            f'Invalid bucket name "{name}": {reason}', {"name": name, "reason": reason}
        )
