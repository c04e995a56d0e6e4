"""
Configuration Management for Presigned Storage
==============================================

Configuration is split into focused, immutable sub-configurations:

- SignatureConfig: HMAC algorithm, signature length and query parameter names
- CompressionConfig: response body compression policy
- ServingConfig: TTL policy and response caching headers
- SecurityConfig: extension, size and CORS policy
- BucketConfig: backend selection for a named bucket

All configuration objects are frozen. "Modifying" a configuration means
building a new value (see ``PresignedConfig.with_bucket`` and
``dataclasses.replace``).
"""

import hashlib
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_COMPRESSIBLE_TYPES = (
    "text/plain",
    "text/html",
    "text/css",
    "text/xml",
    "text/javascript",
    "application/javascript",
    "application/json",
    "application/xml",
    "image/svg+xml",
)

DEFAULT_BLOCKED_EXTENSIONS = (
    "php",
    "phtml",
    "php3",
    "php4",
    "php5",
    "php7",
    "phps",
    "phar",
    "exe",
    "sh",
    "bat",
    "cmd",
)


def _normalize_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    return tuple(ext.lower().lstrip(".") for ext in extensions)


@dataclass(frozen=True)
class SignatureConfig:
    """Configuration for URL signing."""

    algorithm: str = "sha256"
    length: int = 16  # bytes of digest kept; signature is 2 * length hex chars
    expires_param: str = "X-Expires"
    signature_param: str = "X-Signature"

    def __post_init__(self):
        """Validate signature configuration."""
        try:
            digest_size = hashlib.new(self.algorithm).digest_size
        except (ValueError, TypeError):
            raise ValueError(f"Unsupported signature algorithm: {self.algorithm}")

        if not (1 <= self.length <= digest_size):
            raise ValueError(
                f"signature length must be between 1 and {digest_size} for {self.algorithm}"
            )

        if not self.expires_param or not self.signature_param:
            raise ValueError("expires_param and signature_param must be non-empty")

        if self.expires_param == self.signature_param:
            raise ValueError("expires_param and signature_param must differ")

        logger.debug(
            f"Signature configured: algorithm={self.algorithm}, length={self.length}"
        )

    @property
    def hex_length(self) -> int:
        return self.length * 2


@dataclass(frozen=True)
class CompressionConfig:
    """Configuration for gzip compression of response bodies."""

    enabled: bool = True
    min_size: int = 1024
    level: int = 6
    types: Tuple[str, ...] = DEFAULT_COMPRESSIBLE_TYPES
    # Emit Content-Encoding and the compressed Content-Length alongside a
    # compressed body. False reproduces the legacy wire format.
    content_encoding_header: bool = True

    def __post_init__(self):
        """Validate compression configuration."""
        object.__setattr__(self, "types", tuple(self.types))

        if self.min_size < 0:
            raise ValueError("min_size must be non-negative")

        if not (0 <= self.level <= 9):
            raise ValueError("compression level must be between 0 and 9")

        logger.debug(
            f"Compression configured: enabled={self.enabled}, "
            f"min_size={self.min_size}, level={self.level}"
        )

    def should_compress(self, mime_type: str, size: int) -> bool:
        if not self.enabled:
            return False

        if size < self.min_size:
            return False

        return mime_type in self.types


@dataclass(frozen=True)
class ServingConfig:
    """Configuration for URL lifetimes and response caching headers."""

    default_ttl: int = 3600
    max_ttl: int = 86400
    cache_control: str = "private, max-age=3600, must-revalidate"
    content_disposition: str = "inline"
    compression: CompressionConfig = field(default_factory=CompressionConfig)

    def __post_init__(self):
        """Validate serving configuration."""
        if self.max_ttl <= 0:
            raise ValueError("max_ttl must be positive")

        if self.default_ttl < 0:
            raise ValueError("default_ttl must be non-negative")

        logger.debug(
            f"Serving configured: default_ttl={self.default_ttl}s, max_ttl={self.max_ttl}s"
        )


@dataclass(frozen=True)
class SecurityConfig:
    """Configuration for file access policy and CORS."""

    allowed_extensions: Tuple[str, ...] = ()
    blocked_extensions: Tuple[str, ...] = DEFAULT_BLOCKED_EXTENSIONS
    max_file_size: int = 0  # 0 = unlimited
    allowed_origins: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate and normalize security configuration."""
        object.__setattr__(
            self, "allowed_extensions", _normalize_extensions(self.allowed_extensions)
        )
        object.__setattr__(
            self, "blocked_extensions", _normalize_extensions(self.blocked_extensions)
        )
        object.__setattr__(self, "allowed_origins", tuple(self.allowed_origins))

        if self.max_file_size < 0:
            raise ValueError("max_file_size must be non-negative")

        logger.debug(
            f"Security configured: allowed={list(self.allowed_extensions) or 'any'}, "
            f"blocked={len(self.blocked_extensions)} extensions, "
            f"max_file_size={self.max_file_size or 'unlimited'}"
        )

    def is_extension_allowed(self, extension: str) -> bool:
        extension = extension.lower()

        # Blocked list always wins over the allow list
        if extension in self.blocked_extensions:
            return False

        if not self.allowed_extensions:
            return True

        return extension in self.allowed_extensions

    def is_file_size_allowed(self, size: int) -> bool:
        if self.max_file_size == 0:
            return True

        return size <= self.max_file_size

    def is_origin_allowed(self, origin: str) -> bool:
        if not self.allowed_origins:
            return True

        return origin in self.allowed_origins


@dataclass(frozen=True)
class BucketConfig:
    """Backend selection for a named bucket."""

    adapter: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


@dataclass(frozen=True)
class PresignedConfig:
    """Main configuration combining all sub-configurations."""

    secret: str = field(repr=False)
    base_url: str
    signature: SignatureConfig = field(default_factory=SignatureConfig)
    serving: ServingConfig = field(default_factory=ServingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    buckets: Mapping[str, BucketConfig] = field(default_factory=dict)

    def __post_init__(self):
        """Validate overall configuration."""
        if not self.secret:
            raise ValueError("secret must be a non-empty string")

        if not self.base_url:
            raise ValueError("base_url must be a non-empty string")

        logger.info(
            f"Presigned storage configured: base_url={self.base_url}, "
            f"buckets={sorted(self.buckets)}"
        )

    def with_bucket(self, name: str, bucket: BucketConfig) -> "PresignedConfig":
        """Return a copy of this configuration with ``name`` mapped to ``bucket``."""
        buckets = dict(self.buckets)
        buckets[name] = bucket
        return replace(self, buckets=buckets)


_SUB_CONFIGS = {
    "signature": SignatureConfig,
    "security": SecurityConfig,
}


def _build_section(cls, values: Optional[Mapping[str, Any]], section: str):
    """Build a frozen sub-configuration from a mapping, ignoring unknown keys."""
    known = set(cls.__dataclass_fields__)
    kwargs = {}
    for key, value in (values or {}).items():
        if key not in known:
            logger.warning(f"Unknown configuration parameter ignored: {section}.{key}")
            continue
        if isinstance(value, list):
            value = tuple(value)
        kwargs[key] = value
    return cls(**kwargs)


def create_config(settings: Mapping[str, Any]) -> PresignedConfig:
    """
    Factory function for creating a configuration from an already-loaded mapping.

    The mapping uses the same option names as the configuration classes::

        {
            "secret": "...",
            "base_url": "https://cdn.example.com",
            "signature": {"length": 32},
            "serving": {"max_ttl": 600, "compression": {"enabled": False}},
            "security": {"allowed_origins": ["https://app.example.com"]},
            "buckets": {"documents": {"adapter": "local", "path": "/srv/docs"}},
        }

    Args:
        settings: Nested configuration mapping

    Returns:
        Configured PresignedConfig instance

    Raises:
        ValueError: If required options are missing or invalid
    """
    settings = dict(settings)
    for key in ("secret", "base_url"):
        if not settings.get(key):
            raise ValueError(f"Missing required configuration option: {key}")

    serving_values = dict(settings.get("serving") or {})
    compression = _build_section(
        CompressionConfig, serving_values.pop("compression", None), "serving.compression"
    )
    serving = _build_section(ServingConfig, serving_values, "serving")
    serving = replace(serving, compression=compression)

    sections = {
        name: _build_section(cls, settings.get(name), name)
        for name, cls in _SUB_CONFIGS.items()
    }

    buckets: Dict[str, BucketConfig] = {}
    for name, bucket_settings in (settings.get("buckets") or {}).items():
        bucket_settings = dict(bucket_settings)
        adapter = bucket_settings.pop("adapter", None)
        if not adapter:
            raise ValueError(f"Bucket '{name}' is missing its 'adapter' option")
        buckets[name] = BucketConfig(adapter=adapter, options=bucket_settings)

    known = {"secret", "base_url", "serving", "buckets", *_SUB_CONFIGS}
    for key in settings:
        if key not in known:
            logger.warning(f"Unknown configuration parameter ignored: {key}")

    return PresignedConfig(
        secret=settings["secret"],
        base_url=settings["base_url"],
        serving=serving,
        buckets=buckets,
        **sections,
    )
