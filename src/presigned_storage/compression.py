"""
Response Compression
====================

Gzip encoding of response bodies for compressible MIME types.
"""

import gzip
import logging
import zlib

logger = logging.getLogger(__name__)

CONTENT_ENCODING = "gzip"


class CompressionError(Exception):
    """Raised when compression fails."""

    pass


def compress_body(data: bytes, level: int = 6) -> bytes:
    """
    Gzip-compress a response body.

    Args:
        data: Uncompressed body
        level: Compression level 0-9

    Returns:
        Gzip member bytes

    Raises:
        CompressionError: If the data cannot be compressed
    """
    try:
        # Fixed header mtime keeps output identical for identical input
        compressed = gzip.compress(data, compresslevel=level, mtime=0)
    except (zlib.error, ValueError, TypeError) as e:
        raise CompressionError(f"gzip compression failed: {e}") from e

    logger.debug(f"Compressed body {len(data)} -> {len(compressed)} bytes (level {level})")
    return compressed
