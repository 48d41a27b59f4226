"""Mongo Cache - MongoDB-backed key/value cache with TTL and compression."""

from mongo_cache.backends import MongoStore, create_mongo_store
from mongo_cache.connection import (
    ConnectionOptions,
    ConnectionString,
    ExistingHandle,
    format_uri,
    resolve_target,
)
from mongo_cache.core import (
    CacheBackend,
    CacheEntry,
    CacheError,
    Compressor,
    DecodeError,
    EncodeError,
    GateState,
    MongoCacheConfig,
    ReadyGate,
    StorageError,
    StoreConnectionError,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Store
    "MongoStore",
    "create_mongo_store",
    "CacheBackend",
    # Configuration
    "MongoCacheConfig",
    "CacheEntry",
    # Connection targets
    "ConnectionString",
    "ExistingHandle",
    "ConnectionOptions",
    "format_uri",
    "resolve_target",
    # Building blocks
    "Compressor",
    "ReadyGate",
    "GateState",
    # Exceptions
    "CacheError",
    "StoreConnectionError",
    "StorageError",
    "DecodeError",
    "EncodeError",
]
