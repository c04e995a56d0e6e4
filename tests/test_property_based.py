"""
Property-Based Tests for presigned_storage
==========================================

Uses Hypothesis to generate random inputs and verify invariants:
1. Signing: sign/verify agree; any changed component fails verification
2. URLs: temporary_url -> parse_url recovers bucket, path and expiry
3. Bucket names: the validator agrees with the naming grammar
4. Ranges: any satisfiable range returns exactly the requested bytes
"""

import re
import time

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from presigned_storage.config import PresignedConfig, ServingConfig, SignatureConfig
from presigned_storage.security import HmacSigner
from presigned_storage.server.file_server import FileServer
from presigned_storage.storage.backends import InMemoryBackend
from presigned_storage.storage.bucket_names import BucketNameValidator
from presigned_storage.storage.registry import BucketRegistry


# =============================================================================
# Hypothesis Strategies
# =============================================================================

bucket_names = st.from_regex(r"[a-z0-9]{3,12}(-[a-z0-9]{1,10}){0,3}", fullmatch=True)

object_paths = st.lists(
    st.text(
        alphabet=st.characters(blacklist_categories=("Cs", "Cc"), blacklist_characters="/\\"),
        min_size=1,
        max_size=20,
    ).filter(lambda segment: segment not in (".", "..")),
    min_size=1,
    max_size=4,
).map("/".join)

expiries = st.integers(min_value=1, max_value=2**40)

NAME_GRAMMAR = re.compile(r"^[a-z0-9]([a-z0-9\-]*[a-z0-9])?$")


def make_config() -> PresignedConfig:
    return PresignedConfig(
        secret="property-secret",
        base_url="https://cdn.example.com",
        serving=ServingConfig(max_ttl=10**9),
    )


# =============================================================================
# Signing
# =============================================================================


class TestSigningProperties:
    @given(bucket=bucket_names, path=object_paths, expires=expiries)
    def test_sign_then_verify(self, bucket, path, expires):
        signer = HmacSigner("property-secret")

        assert signer.verify(bucket, path, expires, signer.sign(bucket, path, expires))

    @given(bucket=bucket_names, path=object_paths, expires=expiries, other_path=object_paths)
    def test_changed_path_fails(self, bucket, path, expires, other_path):
        assume(path != other_path)
        signer = HmacSigner("property-secret")

        assert not signer.verify(bucket, other_path, expires, signer.sign(bucket, path, expires))

    @given(bucket=bucket_names, path=object_paths, expires=expiries, delta=st.integers(1, 10**6))
    def test_changed_expiry_fails(self, bucket, path, expires, delta):
        signer = HmacSigner("property-secret")

        assert not signer.verify(bucket, path, expires + delta, signer.sign(bucket, path, expires))

    @given(length=st.integers(min_value=1, max_value=32), expires=expiries)
    def test_signature_length(self, length, expires):
        signer = HmacSigner("property-secret", SignatureConfig(length=length))

        assert len(signer.sign("bucket", "file", expires)) == 2 * length


# =============================================================================
# URL Round Trip
# =============================================================================


class TestUrlProperties:
    @given(bucket=bucket_names, path=object_paths, ttl=st.integers(min_value=1, max_value=10**8))
    @settings(suppress_health_check=[HealthCheck.too_slow])
    def test_parse_recovers_components(self, bucket, path, ttl):
        registry = BucketRegistry(make_config())
        registry.add_bucket(bucket, InMemoryBackend())

        components = registry.parse_url(registry.temporary_url(bucket, path, ttl))

        assert components is not None
        assert components.bucket == bucket
        assert components.path == path
        assert registry.signer.verify(bucket, path, components.expires, components.signature)


# =============================================================================
# Bucket Names
# =============================================================================


class TestBucketNameProperties:
    @given(name=bucket_names)
    def test_generated_names_are_valid(self, name):
        assert BucketNameValidator.is_valid(name)

    @given(name=st.text(max_size=70))
    def test_validator_matches_grammar(self, name):
        expected = (
            3 <= len(name) <= 63 and NAME_GRAMMAR.fullmatch(name) is not None and "--" not in name
        )

        assert BucketNameValidator.is_valid(name) is expected


# =============================================================================
# Ranges
# =============================================================================


class TestRangeProperties:
    @given(data=st.binary(min_size=1, max_size=512), bounds=st.data())
    @settings(suppress_health_check=[HealthCheck.too_slow])
    def test_satisfiable_range_returns_requested_bytes(self, data, bounds):
        start = bounds.draw(st.integers(min_value=0, max_value=len(data) - 1))
        end = bounds.draw(st.integers(min_value=start, max_value=len(data) + 100))

        config = make_config()
        signer = HmacSigner(config.secret, config.signature)
        backend = InMemoryBackend()
        backend.put("blob.bin", data, content_type="application/octet-stream")
        registry = BucketRegistry(config, signer)
        registry.add_bucket("files", backend)
        server = FileServer(registry, signer, config)
        expires = int(time.time()) + 60

        response = server.serve(
            "files", "blob.bin", expires, signer.sign("files", "blob.bin", expires),
            headers={"Range": f"bytes={start}-{end}"},
        )

        clamped_end = min(end, len(data) - 1)
        assert response.status_code == 206
        assert response.body == data[start:clamped_end + 1]
        assert response.get_header("Content-Length") == str(clamped_end - start + 1)
        assert response.get_header("Content-Range") == f"bytes {start}-{clamped_end}/{len(data)}"
