"""
WSGI Server Example

This example mounts the file server behind a minimal WSGI application using
the standard library's reference server.

Run it, then open the printed URL in a browser:

    python examples/wsgi_server.py /path/to/directory some-file.pdf
"""

import logging
import sys
from urllib.parse import parse_qs
from wsgiref.simple_server import make_server

from presigned_storage import PresignedConfig, create_with_server, local_backend

logging.basicConfig(level=logging.INFO)

HOST, PORT = "127.0.0.1", 8000


def build_app(server):
    def app(environ, start_response):
        headers = {
            key[5:].replace("_", "-").title(): value
            for key, value in environ.items()
            if key.startswith("HTTP_")
        }
        response = server.serve_from_request(
            environ.get("PATH_INFO", "/"),
            parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True),
            method=environ["REQUEST_METHOD"],
            headers=headers,
        )

        status = f"{response.status_code} {_REASONS.get(response.status_code, '')}".strip()
        start_response(status, list(response.headers.items()))
        return response.iter_body()

    return app


_REASONS = {
    200: "OK",
    206: "Partial Content",
    304: "Not Modified",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    410: "Gone",
}


def main():
    directory, filename = sys.argv[1], sys.argv[2]

    config = PresignedConfig(secret="change-me", base_url=f"http://{HOST}:{PORT}")
    registry, server = create_with_server(config)
    registry.add_bucket("files", local_backend(directory))
    registry.freeze()

    print(f"Signed URL (valid 10 minutes): {registry.temporary_url('files', filename, 600)}")

    with make_server(HOST, PORT, build_app(server)) as httpd:
        httpd.serve_forever()


if __name__ == "__main__":
    main()
