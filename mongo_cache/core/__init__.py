"""Core abstractions and models."""

from mongo_cache.core.cache import CacheBackend
from mongo_cache.core.compression import Compressor
from mongo_cache.core.exceptions import (
    CacheError,
    DecodeError,
    EncodeError,
    StorageError,
    StoreConnectionError,
)
from mongo_cache.core.models import CacheEntry, MongoCacheConfig
from mongo_cache.core.ready import GateState, ReadyGate

__all__ = [
    # Interface
    "CacheBackend",
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
    # Models
    "CacheEntry",
    "MongoCacheConfig",
]
