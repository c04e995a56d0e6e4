"""
File Server
===========

Turns a signed request into an HTTP response.

Request pipeline (the first failing step decides the response):

    1. signature          -> 403 Forbidden
    2. expiry             -> 410 Gone
    3. bucket lookup      -> 404 Not Found
    4. extension policy   -> 404 Not Found
    5. object exists      -> 404 Not Found
    6. size limit         -> 404 Not Found
    7. response headers
    8. conditional GET    -> 304 Not Modified
    9. HEAD               -> 200, no body
   10. byte range         -> 206 Partial Content
   11. full body          -> 200, gzip-compressed when configured

Missing buckets, missing files and policy rejections all produce the same
404 so that clients cannot probe which buckets or files exist. Validation
steps return an ``ErrorKind``; backend errors are converted to their kind,
and every kind is turned into a response by ``_reject``.
"""

import logging
import posixpath
import time
from typing import Any, BinaryIO, Dict, Mapping, NamedTuple, Optional, Tuple, Union
from urllib.parse import urlsplit

from ..compression import CONTENT_ENCODING, CompressionError, compress_body
from ..config import PresignedConfig
from ..error_handling import ErrorKind, PresignedUrlError
from ..security import HmacSigner
from ..storage.backends.base import StorageBackend
from ..storage.registry import BucketRegistry
from ..utils import (
    extract_extension,
    format_http_date,
    generate_etag,
    get_header,
    parse_http_date,
    split_bucket_path,
    strip_base_path,
)
from .response import FileResponse

DEFAULT_MIME_TYPE = "application/octet-stream"
_SKIP_CHUNK_SIZE = 64 * 1024


class _Rejection(NamedTuple):
    status: int
    body: bytes
    log_level: int
    message: str


_NOT_FOUND = _Rejection(404, b"Not Found", logging.INFO, "File not found")
_BAD_REQUEST = _Rejection(400, b"Bad Request", logging.WARNING, "Bad request")

# Every ErrorKind maps to exactly one (status, body, log level) triple
REJECTIONS: Dict[ErrorKind, _Rejection] = {
    ErrorKind.INVALID_SIGNATURE: _Rejection(403, b"Forbidden", logging.WARNING, "Invalid signature"),
    ErrorKind.EXPIRED_URL: _Rejection(410, b"Gone", logging.INFO, "Expired URL"),
    ErrorKind.BUCKET_NOT_FOUND: _NOT_FOUND,
    ErrorKind.FILE_NOT_FOUND: _NOT_FOUND,
    ErrorKind.INVALID_PATH: _BAD_REQUEST,
    ErrorKind.INVALID_BUCKET_NAME: _BAD_REQUEST,
    ErrorKind.BAD_REQUEST: _BAD_REQUEST,
}


class _Authorized(NamedTuple):
    backend: StorageBackend
    size: int


def _plain_response(status: int, body: bytes) -> FileResponse:
    return FileResponse(status, {"Content-Type": "text/plain"}, body)


def _single_value(value: Any) -> Optional[str]:
    """Accept 'v' or ['v'] (parse_qs style); anything else is malformed."""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)) and len(value) == 1 and isinstance(value[0], str):
        return value[0]
    return None


def _is_seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())


def _read_range(stream: BinaryIO, start: int, length: int) -> bytes:
    """Read ``length`` bytes starting at ``start`` (skipping forward on non-seekable streams)."""
    if _is_seekable(stream):
        stream.seek(start)
    else:
        remaining = start
        while remaining > 0:
            skipped = stream.read(min(remaining, _SKIP_CHUNK_SIZE))
            if not skipped:
                return b""
            remaining -= len(skipped)

    chunks = []
    remaining = length
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)

    return b"".join(chunks)


def _content_disposition(disposition: str, path: str) -> str:
    filename = posixpath.basename(path).replace("\r", "").replace("\n", "")
    filename = filename.replace("\\", "\\\\").replace('"', '\\"')
    return f'{disposition}; filename="{filename}"'


class FileServer:
    """
    Serves objects addressed by signed URLs.

    The server holds no per-request state; one instance can serve
    concurrent requests as long as the backends support concurrent reads.
    """

    def __init__(
        self,
        registry: BucketRegistry,
        signer: HmacSigner,
        config: PresignedConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.signer = signer
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    def serve(
        self,
        bucket: str,
        path: str,
        expires: int,
        signature: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FileResponse:
        """
        Serve an object for a signed request.

        Args:
            bucket: Bucket name from the URL
            path: Object path from the URL
            expires: Expiry (unix seconds) from the query string
            signature: Hex signature from the query string
            method: HTTP method (GET or HEAD)
            headers: Request headers (names matched case-insensitively)

        Returns:
            FileResponse; library errors never escape this method
        """
        headers = headers or {}
        method = method.upper()

        authorized = self._authorize(bucket, path, expires, signature)
        if isinstance(authorized, ErrorKind):
            return self._reject(authorized, bucket, path, expires)

        try:
            response = self._build_response(
                authorized.backend, path, authorized.size, method, headers
            )
        except PresignedUrlError as e:
            return self._reject(e.kind, bucket, path, expires, error=e)

        self.logger.info(
            f"File served: bucket={bucket} path={path} "
            f"status={response.status_code} method={method}"
        )
        return response

    def serve_from_request(
        self,
        uri: str,
        query: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FileResponse:
        """
        Serve a request given its URI and parsed query string.

        ``query`` may map names to strings or to single-element lists (the
        ``urllib.parse.parse_qs`` shape). A request whose shape is malformed
        gets 400 without reaching ``serve`` and without being logged.
        """
        query = query or {}
        bad_request = _plain_response(400, b"Bad Request")

        expires_value = _single_value(query.get(self.config.signature.expires_param))
        signature = _single_value(query.get(self.config.signature.signature_param))
        if expires_value is None or not signature:
            return bad_request

        try:
            expires = int(expires_value)
        except ValueError:
            return bad_request

        if expires == 0:
            return bad_request

        try:
            url_path = urlsplit(uri).path
        except ValueError:
            return bad_request

        base_path = urlsplit(self.config.base_url).path
        split = split_bucket_path(strip_base_path(url_path, base_path))
        if split is None:
            return bad_request

        bucket, path = split
        return self.serve(bucket, path, expires, signature, method, headers)

    # ------------------------------------------------------------------
    # Validation (steps 1-6)
    # ------------------------------------------------------------------

    def _authorize(
        self, bucket: str, path: str, expires: int, signature: str
    ) -> Union[ErrorKind, _Authorized]:
        if not self.signer.verify(bucket, path, expires, signature):
            return ErrorKind.INVALID_SIGNATURE

        if int(time.time()) > expires:
            return ErrorKind.EXPIRED_URL

        if not self.registry.has_bucket(bucket):
            return ErrorKind.BUCKET_NOT_FOUND
        backend = self.registry.get_bucket(bucket)

        extension = extract_extension(path)
        if extension and not self.config.security.is_extension_allowed(extension):
            return ErrorKind.FILE_NOT_FOUND

        try:
            if not backend.exists(path):
                return ErrorKind.FILE_NOT_FOUND
            size = backend.size(path)
        except PresignedUrlError as e:
            return e.kind

        if not self.config.security.is_file_size_allowed(size):
            return ErrorKind.FILE_NOT_FOUND

        return _Authorized(backend, size)

    def _reject(
        self,
        kind: ErrorKind,
        bucket: str,
        path: str,
        expires: int,
        error: Optional[Exception] = None,
    ) -> FileResponse:
        rejection = REJECTIONS.get(kind, _BAD_REQUEST)

        details = f"bucket={bucket} path={path}"
        if kind is ErrorKind.EXPIRED_URL:
            details += f" expires={expires}"
        if rejection is _BAD_REQUEST and error is not None:
            details += f" error={error}"

        self.logger.log(rejection.log_level, f"{rejection.message}: {details}")
        return _plain_response(rejection.status, rejection.body)

    # ------------------------------------------------------------------
    # Response construction (steps 7-11)
    # ------------------------------------------------------------------

    def _build_response(
        self,
        backend: StorageBackend,
        path: str,
        size: int,
        method: str,
        request_headers: Mapping[str, str],
    ) -> FileResponse:
        mime_type = self._mime_type(backend, path)
        last_modified = backend.last_modified(path)
        etag = generate_etag(path, size, last_modified)

        headers = self._build_headers(
            path, mime_type, size, last_modified, etag, request_headers
        )

        encoded = self._is_encoded(mime_type, size)
        if encoded:
            # Compressed length is only known once the body is compressed
            headers["Content-Encoding"] = CONTENT_ENCODING
            del headers["Content-Length"]

        if self._is_not_modified(request_headers, etag, last_modified):
            return FileResponse(304, headers)

        if method == "HEAD":
            return FileResponse(200, headers)

        byte_range = self._parse_range(get_header(request_headers, "Range"), size)
        if byte_range is not None:
            # Ranges are always served from the identity representation
            headers.pop("Content-Encoding", None)
            return self._build_partial_response(backend, path, byte_range, size, headers)

        return self._build_full_response(backend, path, mime_type, size, headers)

    def _is_encoded(self, mime_type: str, size: int) -> bool:
        """Whether a full response carries Content-Encoding: gzip."""
        compression = self.config.serving.compression
        return compression.content_encoding_header and compression.should_compress(mime_type, size)

    @staticmethod
    def _mime_type(backend: StorageBackend, path: str) -> str:
        try:
            return backend.mime_type(path) or DEFAULT_MIME_TYPE
        except PresignedUrlError:
            return DEFAULT_MIME_TYPE

    def _build_headers(
        self,
        path: str,
        mime_type: str,
        size: int,
        last_modified: int,
        etag: str,
        request_headers: Mapping[str, str],
    ) -> Dict[str, str]:
        serving = self.config.serving
        headers = {
            "Content-Type": mime_type,
            "Content-Length": str(size),
            "ETag": f'"{etag}"',
            "Last-Modified": format_http_date(last_modified),
            "Cache-Control": serving.cache_control,
            "Accept-Ranges": "bytes",
            "Content-Disposition": _content_disposition(serving.content_disposition, path),
        }

        origin = get_header(request_headers, "Origin")
        if origin is not None and self.config.security.is_origin_allowed(origin):
            headers["Access-Control-Allow-Origin"] = origin
            headers["Access-Control-Allow-Methods"] = "GET, HEAD"
            headers["Access-Control-Allow-Headers"] = "Range"
            headers["Access-Control-Expose-Headers"] = "Content-Length, Content-Range, Accept-Ranges"

        return headers

    @staticmethod
    def _is_not_modified(
        request_headers: Mapping[str, str], etag: str, last_modified: int
    ) -> bool:
        if_none_match = get_header(request_headers, "If-None-Match")
        if if_none_match is not None and if_none_match.strip('"') == etag:
            return True

        if_modified_since = get_header(request_headers, "If-Modified-Since")
        if if_modified_since is not None:
            since = parse_http_date(if_modified_since)
            if since is not None and last_modified <= since:
                return True

        return False

    @staticmethod
    def _parse_range(range_header: Optional[str], size: int) -> Optional[Tuple[int, int]]:
        """
        Parse a single 'bytes=start-end' range.

        Returns:
            (start, end) inclusive with end clamped to the object, or None when
            the header is absent, malformed or unsatisfiable (serve in full)
        """
        if range_header is None or not range_header.startswith("bytes="):
            return None

        parts = range_header[len("bytes="):].split("-")
        if len(parts) != 2:
            return None

        start_text, end_text = (part.strip() for part in parts)
        # ASCII digits only: str.isdigit() also accepts '²' and other Unicode digits
        for text in (start_text, end_text):
            if text and not (text.isascii() and text.isdigit()):
                return None

        start = int(start_text) if start_text else 0
        end = int(end_text) if end_text else size - 1

        if start > end or start >= size:
            return None

        return start, min(end, size - 1)

    def _build_partial_response(
        self,
        backend: StorageBackend,
        path: str,
        byte_range: Tuple[int, int],
        size: int,
        headers: Dict[str, str],
    ) -> FileResponse:
        start, end = byte_range
        length = end - start + 1

        headers["Content-Length"] = str(length)
        headers["Content-Range"] = f"bytes {start}-{end}/{size}"

        stream = backend.read_stream(path)
        try:
            content = _read_range(stream, start, length)
        finally:
            stream.close()

        return FileResponse(206, headers, content)

    def _build_full_response(
        self,
        backend: StorageBackend,
        path: str,
        mime_type: str,
        size: int,
        headers: Dict[str, str],
    ) -> FileResponse:
        compression = self.config.serving.compression

        if not compression.should_compress(mime_type, size):
            # Plain transfer streams without buffering the whole object
            return FileResponse(200, headers, backend.read_stream(path))

        content = backend.read(path)
        try:
            body = compress_body(content, compression.level)
        except CompressionError as e:
            self.logger.warning(f"Compression failed for {path}, sending uncompressed: {e}")
            headers.pop("Content-Encoding", None)
            headers["Content-Length"] = str(size)
            return FileResponse(200, headers, content)

        if compression.content_encoding_header:
            headers["Content-Length"] = str(len(body))

        return FileResponse(200, headers, body)
