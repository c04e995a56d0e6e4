"""
Utility functions for presigned_storage
=======================================

Small HTTP helpers shared by the registry and the file server: cache
validators, HTTP dates, header lookup and URL path splitting.
"""

import logging
import posixpath
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote

import xxhash

logger = logging.getLogger(__name__)


def generate_etag(path: str, size: int, last_modified: int) -> str:
    """
    Build the (unquoted) ETag for an object.

    The tag identifies a version by path, size and modification time; it is
    cheap to compute without reading the object and is not a content hash.
    """
    return xxhash.xxh3_128(f"{path}-{size}-{last_modified}".encode("utf-8")).hexdigest()


def format_http_date(timestamp: int) -> str:
    """Format unix seconds as an RFC 7231 HTTP date, e.g. 'Sun, 06 Nov 1994 08:49:37 GMT'."""
    return format_datetime(datetime.fromtimestamp(timestamp, tz=timezone.utc), usegmt=True)


def parse_http_date(value: str) -> Optional[int]:
    """Parse an HTTP date into unix seconds, or None if it is not a date."""
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None

    if parsed is None:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return int(parsed.timestamp())


def get_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    if not headers:
        return None

    normalized = name.lower()
    for key, value in headers.items():
        if key.lower() == normalized:
            return value

    return None


def extract_extension(path: str) -> str:
    """
    Return the extension of the last path segment without the dot.

    Dotfiles count as extensions ('.htaccess' -> 'htaccess') so that they
    are subject to the extension policy.
    """
    name = posixpath.basename(path)
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]


def strip_base_path(url_path: str, base_path: str) -> str:
    """Remove the path component of the configured base URL from a request path."""
    base_path = base_path.rstrip("/")
    if base_path and (url_path == base_path or url_path.startswith(base_path + "/")):
        return url_path[len(base_path):]
    return url_path


def split_bucket_path(url_path: str) -> Optional[Tuple[str, str]]:
    """
    Split '/bucket/some/file.txt' into ('bucket', 'some/file.txt').

    Returns:
        (bucket, path) with the path percent-decoded, or None if the URL path
        does not have both a bucket segment and an object path.
    """
    parts = url_path.lstrip("/").split("/", 1)
    if len(parts) != 2:
        return None

    bucket, path = parts
    return unquote(bucket), unquote(path)
