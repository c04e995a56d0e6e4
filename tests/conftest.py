"""
Shared fixtures for presigned_storage tests.

S3 tests run against moto's in-process mock; no containers are needed.
"""

import os
import shutil
import tempfile
import time
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

from presigned_storage.config import PresignedConfig
from presigned_storage.security import HmacSigner
from presigned_storage.server.file_server import FileServer
from presigned_storage.storage.backends import FilesystemBackend, InMemoryBackend
from presigned_storage.storage.registry import BucketRegistry

TEST_SECRET = "test-secret"
TEST_BASE_URL = "https://cdn.example.com"


# ==================== Configuration Fixtures ====================


@pytest.fixture
def config() -> PresignedConfig:
    """Default configuration used by most tests."""
    return PresignedConfig(secret=TEST_SECRET, base_url=TEST_BASE_URL)


@pytest.fixture
def signer(config) -> HmacSigner:
    return HmacSigner(config.secret, config.signature)


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        if path.exists():
            shutil.rmtree(path)


# ==================== Serving Fixtures ====================


@pytest.fixture
def registry(config, signer, temp_dir) -> BucketRegistry:
    """Registry with a 'documents' bucket backed by temp_dir."""
    registry = BucketRegistry(config, signer)
    registry.add_bucket("documents", FilesystemBackend(temp_dir))
    return registry


@pytest.fixture
def server(registry, signer, config) -> FileServer:
    return FileServer(registry, signer, config)


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def future_expires() -> int:
    return int(time.time()) + 3600


# ==================== Mocked S3 Fixtures ====================


@pytest.fixture
def aws_credentials():
    """Mocked AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def mock_s3_client(aws_credentials):
    """Provide a mocked S3 client with a 'test-bucket' bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="test-bucket")
        yield client


@pytest.fixture
def mock_s3_bucket(mock_s3_client):
    yield "test-bucket"
