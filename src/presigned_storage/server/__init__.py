"""
Serving Layer
=============

Signed-request validation and HTTP response construction.
"""

from .file_server import REJECTIONS, FileServer
from .response import FileResponse

__all__ = ["FileServer", "FileResponse", "REJECTIONS"]
