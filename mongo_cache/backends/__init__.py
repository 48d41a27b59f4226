"""Cache backend implementations."""

from mongo_cache.backends.mongo_backend import MongoStore, create_mongo_store

__all__ = [
    "MongoStore",
    "create_mongo_store",
]
