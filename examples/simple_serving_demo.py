"""
Simple Serving Example

This example issues a signed URL for a file in a local bucket and serves it
through the file server, including a conditional and a range request.
"""

import tempfile
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from presigned_storage import PresignedConfig, create_with_server, local_backend


def main():
    with tempfile.TemporaryDirectory() as tmpdir:
        Path(tmpdir, "report.txt").write_text("Quarterly numbers: all up.\n")

        config = PresignedConfig(secret="change-me", base_url="https://files.example.com")
        registry, server = create_with_server(config)
        registry.add_bucket("documents", local_backend(tmpdir))
        registry.freeze()

        # Issue a URL valid for ten minutes
        url = registry.temporary_url("documents", "report.txt", 600)
        print(f"Signed URL: {url}")

        parts = urlsplit(url)
        query = parse_qs(parts.query)

        with server.serve_from_request(parts.path, query) as response:
            print(f"GET -> {response.status_code}")
            print(response.read_body().decode())
            etag = response.get_header("ETag")

        # Revalidation with the ETag returns 304 without a body
        response = server.serve_from_request(parts.path, query, headers={"If-None-Match": etag})
        print(f"Conditional GET -> {response.status_code}")

        # First nine bytes only
        response = server.serve_from_request(parts.path, query, headers={"Range": "bytes=0-8"})
        print(f"Range GET -> {response.status_code} {response.get_header('Content-Range')}")
        print(response.read_body())

        # Tampering with the path invalidates the signature
        response = server.serve_from_request("/documents/other.txt", query)
        print(f"Tampered URL -> {response.status_code}")


if __name__ == "__main__":
    main()
