"""
Tests for configuration validation and the create_config factory.
"""

import dataclasses
import logging

import pytest

from presigned_storage.config import (
    DEFAULT_BLOCKED_EXTENSIONS,
    BucketConfig,
    CompressionConfig,
    PresignedConfig,
    SecurityConfig,
    ServingConfig,
    SignatureConfig,
    create_config,
)


class TestSignatureConfig:
    def test_defaults(self):
        config = SignatureConfig()

        assert config.algorithm == "sha256"
        assert config.length == 16
        assert config.hex_length == 32
        assert config.expires_param == "X-Expires"
        assert config.signature_param == "X-Signature"

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValueError, match="Unsupported signature algorithm"):
            SignatureConfig(algorithm="not-a-hash")

    @pytest.mark.parametrize("length", [0, -1, 33])
    def test_length_bounded_by_digest_size(self, length):
        with pytest.raises(ValueError, match="signature length"):
            SignatureConfig(length=length)

    def test_full_digest_length_allowed(self):
        assert SignatureConfig(length=32).hex_length == 64

    def test_param_names_must_differ(self):
        with pytest.raises(ValueError, match="must differ"):
            SignatureConfig(expires_param="sig", signature_param="sig")

    def test_param_names_must_be_non_empty(self):
        with pytest.raises(ValueError, match="non-empty"):
            SignatureConfig(expires_param="")


class TestCompressionConfig:
    def test_should_compress_large_text(self):
        assert CompressionConfig().should_compress("text/plain", 2048)

    def test_small_bodies_not_compressed(self):
        assert not CompressionConfig().should_compress("text/plain", 1023)

    def test_min_size_is_inclusive(self):
        assert CompressionConfig().should_compress("application/json", 1024)

    def test_disabled(self):
        assert not CompressionConfig(enabled=False).should_compress("text/plain", 10**6)

    def test_type_not_in_list(self):
        assert not CompressionConfig().should_compress("image/png", 10**6)

    def test_custom_types_stored_as_tuple(self):
        config = CompressionConfig(types=["text/csv"])

        assert config.types == ("text/csv",)
        assert config.should_compress("text/csv", 4096)

    @pytest.mark.parametrize("level", [-1, 10])
    def test_level_range(self, level):
        with pytest.raises(ValueError, match="compression level"):
            CompressionConfig(level=level)

    def test_negative_min_size_rejected(self):
        with pytest.raises(ValueError, match="min_size"):
            CompressionConfig(min_size=-1)


class TestServingConfig:
    def test_defaults(self):
        config = ServingConfig()

        assert config.default_ttl == 3600
        assert config.max_ttl == 86400
        assert config.cache_control == "private, max-age=3600, must-revalidate"
        assert config.content_disposition == "inline"

    def test_max_ttl_must_be_positive(self):
        with pytest.raises(ValueError, match="max_ttl"):
            ServingConfig(max_ttl=0)

    def test_default_ttl_non_negative(self):
        with pytest.raises(ValueError, match="default_ttl"):
            ServingConfig(default_ttl=-5)


class TestSecurityConfig:
    def test_default_blocked_extensions(self):
        config = SecurityConfig()

        assert config.blocked_extensions == DEFAULT_BLOCKED_EXTENSIONS
        assert not config.is_extension_allowed("php")
        assert not config.is_extension_allowed("PHP")
        assert config.is_extension_allowed("pdf")

    def test_extensions_normalized(self):
        config = SecurityConfig(allowed_extensions=[".PDF", "Txt"], blocked_extensions=[".EXE"])

        assert config.allowed_extensions == ("pdf", "txt")
        assert config.blocked_extensions == ("exe",)

    def test_allow_list(self):
        config = SecurityConfig(allowed_extensions=("pdf", "txt"))

        assert config.is_extension_allowed("pdf")
        assert not config.is_extension_allowed("docx")

    def test_block_list_wins_over_allow_list(self):
        config = SecurityConfig(allowed_extensions=("php",))

        assert not config.is_extension_allowed("php")

    def test_file_size_unlimited_by_default(self):
        assert SecurityConfig().is_file_size_allowed(10**12)

    def test_file_size_limit_inclusive(self):
        config = SecurityConfig(max_file_size=100)

        assert config.is_file_size_allowed(100)
        assert not config.is_file_size_allowed(101)

    def test_negative_max_file_size_rejected(self):
        with pytest.raises(ValueError):
            SecurityConfig(max_file_size=-1)

    def test_origins(self):
        assert SecurityConfig().is_origin_allowed("https://anything.example")

        config = SecurityConfig(allowed_origins=["https://app.example.com"])
        assert config.allowed_origins == ("https://app.example.com",)
        assert config.is_origin_allowed("https://app.example.com")
        assert not config.is_origin_allowed("https://evil.example.com")


class TestPresignedConfig:
    def test_requires_secret_and_base_url(self):
        with pytest.raises(ValueError, match="secret"):
            PresignedConfig(secret="", base_url="https://cdn.example.com")

        with pytest.raises(ValueError, match="base_url"):
            PresignedConfig(secret="s", base_url="")

    def test_repr_hides_secret(self):
        config = PresignedConfig(secret="hunter2-secret", base_url="https://cdn.example.com")

        assert "hunter2-secret" not in repr(config)

    def test_frozen(self):
        config = PresignedConfig(secret="s", base_url="https://cdn.example.com")

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.secret = "other"

    def test_with_bucket_returns_new_config(self):
        config = PresignedConfig(secret="s", base_url="https://cdn.example.com")
        bucket = BucketConfig("local", {"path": "/srv/docs"})

        updated = config.with_bucket("documents", bucket)

        assert updated.buckets == {"documents": bucket}
        assert config.buckets == {}
        assert updated.secret == config.secret

    def test_bucket_config_options(self):
        bucket = BucketConfig("s3", {"bucket": "files", "region": "eu-west-1"})

        assert bucket.get_option("region") == "eu-west-1"
        assert bucket.get_option("prefix", "") == ""


class TestCreateConfig:
    def test_builds_nested_sections(self):
        config = create_config(
            {
                "secret": "s",
                "base_url": "https://cdn.example.com",
                "signature": {"length": 32, "expires_param": "e", "signature_param": "sig"},
                "serving": {"max_ttl": 600, "compression": {"enabled": False}},
                "security": {"allowed_origins": ["https://app.example.com"], "max_file_size": 10},
                "buckets": {"documents": {"adapter": "local", "path": "/srv/docs"}},
            }
        )

        assert config.signature.length == 32
        assert config.signature.expires_param == "e"
        assert config.serving.max_ttl == 600
        assert config.serving.compression.enabled is False
        assert config.security.allowed_origins == ("https://app.example.com",)
        assert config.buckets["documents"] == BucketConfig("local", {"path": "/srv/docs"})

    def test_defaults_when_sections_missing(self):
        config = create_config({"secret": "s", "base_url": "https://cdn.example.com"})

        assert config.signature == SignatureConfig()
        assert config.serving == ServingConfig()
        assert config.buckets == {}

    @pytest.mark.parametrize("missing", ["secret", "base_url"])
    def test_missing_required_option(self, missing):
        settings = {"secret": "s", "base_url": "https://cdn.example.com"}
        del settings[missing]

        with pytest.raises(ValueError, match=missing):
            create_config(settings)

    def test_bucket_without_adapter_rejected(self):
        with pytest.raises(ValueError, match="adapter"):
            create_config(
                {"secret": "s", "base_url": "https://x.example", "buckets": {"docs": {"path": "/tmp"}}}
            )

    def test_unknown_keys_warn_and_are_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="presigned_storage.config"):
            config = create_config(
                {
                    "secret": "s",
                    "base_url": "https://cdn.example.com",
                    "routes": {"prefix": "/x"},
                    "security": {"bogus": 1},
                }
            )

        assert config.security == SecurityConfig()
        assert "Unknown configuration parameter ignored: routes" in caplog.text
        assert "Unknown configuration parameter ignored: security.bogus" in caplog.text

    def test_invalid_values_raise(self):
        with pytest.raises(ValueError):
            create_config(
                {"secret": "s", "base_url": "https://x.example", "serving": {"compression": {"level": 11}}}
            )
