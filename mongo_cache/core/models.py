"""Core data models for the cache layer."""

import os
import time
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_TTL_SECONDS = 60
DEFAULT_COLLECTION = "cache_entries"
DEFAULT_DATABASE = "cache"
DEFAULT_OFFLOAD_THRESHOLD = 64 * 1024

BINARY_TYPES = (bytes, bytearray, memoryview)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_binary(value: Any) -> bool:
    """Return True if ``value`` is a binary payload eligible for compression."""
    return isinstance(value, BINARY_TYPES)


class CacheEntry(BaseModel):
    """Document persisted for a single cache key.

    Attributes:
        key: Logical cache key, unique within a bucket
        value: Stored payload, raw or gzip-compressed
        compressed: True iff ``value`` is a gzip encoding of the original bytes
        expire: Absolute expiration instant in epoch milliseconds
    """

    key: str
    value: Any = None
    compressed: bool = False
    expire: int

    @classmethod
    def build(cls, key: str, value: Any, ttl: int | None, default_ttl: int = DEFAULT_TTL_SECONDS) -> "CacheEntry":
        """Create an entry expiring ``ttl`` seconds from now.

        A falsy ``ttl`` (None or 0) falls back to ``default_ttl``.
        """
        if isinstance(value, (bytearray, memoryview)):
            value = bytes(value)
        return cls(key=key, value=value, expire=now_ms() + (ttl or default_ttl) * 1000)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "CacheEntry":
        """Build an entry from a stored document, ignoring driver fields like ``_id``."""
        return cls(
            key=document["key"],
            value=document.get("value"),
            compressed=bool(document.get("compressed", False)),
            expire=document["expire"],
        )

    def to_document(self) -> dict[str, Any]:
        """Render the entry as the stored document.

        ``compressed`` is only written when set.
        """
        document: dict[str, Any] = {"key": self.key, "value": self.value, "expire": self.expire}
        if self.compressed:
            document["compressed"] = True
        return document

    def is_expired(self, at_ms: int | None = None) -> bool:
        """Check whether the entry expired before ``at_ms`` (defaults to now)."""
        return self.expire < (now_ms() if at_ms is None else at_ms)


class MongoCacheConfig(BaseModel):
    """Configuration for a MongoDB-backed cache store."""

    url: str | None = None
    host: str = "127.0.0.1"
    port: int = Field(default=27017, ge=1, le=65535)
    database: str = DEFAULT_DATABASE
    collection: str = DEFAULT_COLLECTION
    client: Any = None
    username: str | None = None
    password: str | None = None
    pool_size: int | None = Field(default=None, gt=0)

    compression: bool = False
    compression_offload_threshold: int = Field(default=DEFAULT_OFFLOAD_THRESHOLD, ge=0)
    default_ttl: int = Field(default=DEFAULT_TTL_SECONDS, gt=0)

    # Forwarded verbatim to AsyncMongoClient
    client_options: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> "MongoCacheConfig":
        """Build a config from ``MONGO_CACHE_*`` environment variables.

        Keyword overrides win over the environment.
        """
        env = os.environ
        values: dict[str, Any] = {}
        if env.get("MONGO_CACHE_URL"):
            values["url"] = env["MONGO_CACHE_URL"]
        for field in ("host", "database", "collection", "username", "password"):
            env_var = f"MONGO_CACHE_{field.upper()}"
            if env.get(env_var):
                values[field] = env[env_var]
        if env.get("MONGO_CACHE_PORT"):
            values["port"] = int(env["MONGO_CACHE_PORT"])
        if env.get("MONGO_CACHE_POOL_SIZE"):
            values["pool_size"] = int(env["MONGO_CACHE_POOL_SIZE"])
        if env.get("MONGO_CACHE_COMPRESSION"):
            values["compression"] = env["MONGO_CACHE_COMPRESSION"].strip().lower() in ("1", "true", "yes", "on")
        values.update(overrides)
        return cls(**values)
