"""
Tests for HMAC URL signing.
"""

import hashlib
import hmac

import pytest

from presigned_storage.config import SignatureConfig
from presigned_storage.security import HmacSigner


@pytest.fixture
def default_signer():
    return HmacSigner("test-secret")


class TestSigning:
    def test_signatures_are_deterministic(self, default_signer):
        first = default_signer.sign("bucket", "path/to/file.pdf", 1700000000)
        second = default_signer.sign("bucket", "path/to/file.pdf", 1700000000)

        assert first == second

    def test_matches_truncated_hmac_sha256(self, default_signer):
        expected = hmac.new(
            b"test-secret", b"bucket:path/to/file.pdf:1700000000", hashlib.sha256
        ).digest()[:16].hex()

        assert default_signer.sign("bucket", "path/to/file.pdf", 1700000000) == expected

    @pytest.mark.parametrize(
        "other",
        [
            ("bucket2", "path/to/file.pdf", 1700000000),
            ("bucket", "path/to/file2.pdf", 1700000000),
            ("bucket", "path/to/file.pdf", 1700000001),
        ],
    )
    def test_each_component_changes_signature(self, default_signer, other):
        base = default_signer.sign("bucket", "path/to/file.pdf", 1700000000)

        assert default_signer.sign(*other) != base

    def test_different_secrets_give_different_signatures(self):
        assert HmacSigner("secret-a").sign("b", "p", 1) != HmacSigner("secret-b").sign("b", "p", 1)

    def test_default_length_is_32_hex_chars(self, default_signer):
        signature = default_signer.sign("bucket", "file.pdf", 1700000000)

        assert len(signature) == 32
        assert all(c in "0123456789abcdef" for c in signature)

    def test_custom_length(self):
        signer = HmacSigner("test-secret", SignatureConfig(length=8))

        assert len(signer.sign("bucket", "file.pdf", 1700000000)) == 16

    def test_custom_algorithm(self):
        signer = HmacSigner("test-secret", SignatureConfig(algorithm="sha512", length=64))
        expected = hmac.new(b"test-secret", b"b:p:1", hashlib.sha512).hexdigest()

        assert signer.sign("b", "p", 1) == expected

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            HmacSigner("")


class TestVerification:
    def test_verifies_valid_signature(self, default_signer):
        signature = default_signer.sign("bucket", "path/to/file.pdf", 1700000000)

        assert default_signer.verify("bucket", "path/to/file.pdf", 1700000000, signature)

    @pytest.mark.parametrize(
        "bucket,path,expires",
        [
            ("tampered", "path/to/file.pdf", 1700000000),
            ("bucket", "tampered/file.pdf", 1700000000),
            ("bucket", "path/to/file.pdf", 1700000001),
        ],
    )
    def test_rejects_tampered_components(self, default_signer, bucket, path, expires):
        signature = default_signer.sign("bucket", "path/to/file.pdf", 1700000000)

        assert not default_signer.verify(bucket, path, expires, signature)

    @pytest.mark.parametrize("signature", ["invalid", "", "00" * 16, "é" * 32])
    def test_rejects_bad_signatures(self, default_signer, signature):
        assert not default_signer.verify("bucket", "path/to/file.pdf", 1700000000, signature)

    def test_uppercase_hex_is_rejected(self, default_signer):
        signature = default_signer.sign("bucket", "file.pdf", 1700000000)

        assert not default_signer.verify("bucket", "file.pdf", 1700000000, signature.upper())


class TestSecretHandling:
    def test_repr_hides_secret(self):
        signer = HmacSigner("super-secret-value")

        assert "super-secret-value" not in repr(signer)
        assert "sha256" in repr(signer)
