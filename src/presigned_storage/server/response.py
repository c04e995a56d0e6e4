"""
File Response
=============

Framework-neutral HTTP response produced by the file server. Framework
adapters copy ``status_code`` and ``headers`` and stream ``iter_body()``.
"""

import copy
from typing import BinaryIO, Dict, Iterator, Optional, Union

from ..utils import get_header

Body = Union[bytes, BinaryIO, None]

DEFAULT_CHUNK_SIZE = 64 * 1024


class FileResponse:
    """
    HTTP response with a status, headers and an optional body.

    The body is either absent, bytes held in memory, or an open binary
    stream owned by the response. A streamed body is closed by
    ``iter_body()``, ``read_body()``, ``close()`` or leaving a ``with`` block.
    """

    def __init__(self, status_code: int, headers: Optional[Dict[str, str]] = None, body: Body = None):
        self._status_code = status_code
        self._headers: Dict[str, str] = dict(headers or {})
        self._body = body

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> Dict[str, str]:
        """Copy of the response headers, in insertion order."""
        return dict(self._headers)

    @property
    def body(self) -> Body:
        return self._body

    def get_header(self, name: str) -> Optional[str]:
        return get_header(self._headers, name)

    def has_header(self, name: str) -> bool:
        return self.get_header(name) is not None

    def with_header(self, name: str, value: str) -> "FileResponse":
        """Return a copy of this response with an added (or replaced) header."""
        response = copy.copy(self)
        response._headers = dict(self._headers)
        response._headers[name] = value
        return response

    def has_body(self) -> bool:
        return self._body is not None

    def is_stream(self) -> bool:
        return self._body is not None and not isinstance(self._body, (bytes, bytearray))

    def is_success(self) -> bool:
        return 200 <= self._status_code < 300

    def is_not_modified(self) -> bool:
        return self._status_code == 304

    def is_partial_content(self) -> bool:
        return self._status_code == 206

    def iter_body(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the body in chunks, closing a streamed body when done."""
        if self._body is None:
            return

        if not self.is_stream():
            yield bytes(self._body)
            return

        try:
            while True:
                chunk = self._body.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    def read_body(self) -> bytes:
        """Return the whole body as bytes (consumes a streamed body)."""
        return b"".join(self.iter_body())

    def close(self) -> None:
        if self.is_stream():
            self._body.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        kind = "stream" if self.is_stream() else ("bytes" if self.has_body() else "none")
        return f"FileResponse(status_code={self._status_code}, body={kind})"
