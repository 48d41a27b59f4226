"""MongoDB cache backend with lazy connection, TTL expiry and compression.

Entries live in one collection per store (the "bucket") as documents of the
form ``{"key": ..., "value": ..., "expire": <epoch ms>, "compressed": true?}``.
Expired entries are never swept; they are dropped when a read finds them.
"""

import asyncio
import logging
from typing import Any, Optional, Union

from bson.errors import BSONError
from pymongo import AsyncMongoClient, WriteConcern
from pymongo.errors import PyMongoError

from mongo_cache.connection import (
    ConnectionOptions,
    ConnectionString,
    ExistingHandle,
    format_uri,
    resolve_target,
)
from mongo_cache.core.cache import CacheBackend
from mongo_cache.core.compression import Compressor
from mongo_cache.core.exceptions import CacheError, StorageError, StoreConnectionError
from mongo_cache.core.models import CacheEntry, MongoCacheConfig, now_ms
from mongo_cache.core.ready import GateState, ReadyGate

logger = logging.getLogger(__name__)

# Client-side BSON encode/decode failures (InvalidDocument, DocumentTooLarge,
# InvalidBSON) derive from BSONError, not PyMongoError.
DRIVER_ERRORS = (PyMongoError, BSONError)


class MongoStore(CacheBackend):
    """Key/value cache stored in a MongoDB collection.

    The connection is opened on first use, exactly once, no matter how many
    operations are issued concurrently before it is ready. A failed connect
    is terminal for the store: every later operation raises the same
    ``StoreConnectionError``.

    Example:
        ```python
        from mongo_cache import MongoStore

        store = MongoStore("mongodb://127.0.0.1:27017/cache", collection="pages")
        await store.set("home", b"<html>...</html>", ttl=300)
        html = await store.get("home")
        await store.close()
        ```

    Note:
        ``get`` returns None both for a missing key and for a stored None.
        Use ``exists`` to tell them apart.

    Args:
        target: Connection string, ``AsyncDatabase``/``AsyncMongoClient``
            handle, ``MongoCacheConfig``, a dict of options, or None
        config: Store configuration (built from ``options`` when omitted)
        **options: ``MongoCacheConfig`` fields, e.g. ``collection``,
            ``compression``, ``pool_size``
    """

    def __init__(
        self,
        target: Any = None,
        config: Optional[MongoCacheConfig] = None,
        **options: Any,
    ) -> None:
        """Initialize the store without connecting."""
        if isinstance(target, MongoCacheConfig):
            config, target = target, None
        elif isinstance(target, dict) and "kind" not in target:
            options = {**target, **options}
            target = None

        if config is None:
            config = MongoCacheConfig(**options)
        elif options:
            config = MongoCacheConfig(**{**dict(config), **options})

        self.config = config
        self.coll = config.collection
        self.compressor = Compressor(
            enabled=config.compression,
            offload_threshold=config.compression_offload_threshold,
        )
        self.client: Optional[AsyncMongoClient] = None
        self._owns_client = False
        self._target = resolve_target(target, config)
        self._gate: ReadyGate = ReadyGate(self._connect, name=f"mongo cache '{self.coll}'")
        self._background: set[asyncio.Task] = set()
        self._write_concern = WriteConcern(w=1)

        # Metrics
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self._sets = 0
        self._deletes = 0
        self._clears = 0

    @property
    def state(self) -> GateState:
        """Connection state of the store."""
        return self._gate.state

    @property
    def target(self) -> Union[ConnectionString, ExistingHandle, ConnectionOptions]:
        """Resolved connection target."""
        return self._target

    async def ready(self) -> Any:
        """Wait until connected and return the database handle.

        Raises:
            StoreConnectionError: If connecting failed
        """
        return await self._gate.ready()

    async def get(self, key: str) -> Optional[Any]:
        """Retrieve a value.

        An expired entry counts as a miss and is deleted in the background.

        Raises:
            StoreConnectionError: If the store could not connect
            StorageError: If the lookup failed
            DecodeError: If a compressed value is corrupt
        """
        collection = await self._collection()
        try:
            document = await collection.find_one({"key": key})
        except DRIVER_ERRORS as e:
            raise StorageError(str(e), operation="get") from e

        if document is None:
            self._misses += 1
            return None

        entry = CacheEntry.from_document(document)
        if entry.is_expired():
            self._misses += 1
            self._expired += 1
            logger.debug(f"Entry {key!r} in {self.coll!r} expired, scheduling delete")
            self._schedule_delete(key)
            return None

        value = entry.value
        if entry.compressed:
            value = await self.compressor.decompress(value)
        self._hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> Any:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key
            value: Any BSON-encodable value; binary values may be compressed
            ttl: Seconds to live; None or 0 uses ``config.default_ttl``

        Returns:
            ``value`` exactly as passed in

        Raises:
            StoreConnectionError: If the store could not connect
            StorageError: If the upsert failed
        """
        collection = await self._collection()
        entry = CacheEntry.build(key, value, ttl, default_ttl=self.config.default_ttl)
        entry = await self.compressor.compress(entry)
        try:
            await collection.replace_one({"key": key}, entry.to_document(), upsert=True)
        except DRIVER_ERRORS as e:
            raise StorageError(str(e), operation="set") from e

        self._sets += 1
        return value

    async def delete(self, key: str) -> None:
        """Delete the entry for a key. Missing keys are not an error."""
        collection = await self._collection()
        try:
            await collection.delete_one({"key": key})
        except DRIVER_ERRORS as e:
            raise StorageError(str(e), operation="delete") from e
        self._deletes += 1

    async def clear(self, key: Optional[str] = None) -> None:
        """Delete every entry in this store's collection.

        Args:
            key: Ignored. The flush always covers the whole bucket.
        """
        collection = await self._collection()
        try:
            await collection.delete_many({})
        except DRIVER_ERRORS as e:
            raise StorageError(str(e), operation="clear") from e
        self._clears += 1

    async def exists(self, key: str) -> bool:
        """Check whether a live entry exists, even one holding None.

        Expired entries are reported as absent but left in place.
        """
        collection = await self._collection()
        try:
            document = await collection.find_one({"key": key}, projection={"expire": 1})
        except DRIVER_ERRORS as e:
            raise StorageError(str(e), operation="exists") from e
        return document is not None and document["expire"] >= now_ms()

    async def health_check(self) -> bool:
        """Check that the store is connected and answers a ping.

        Returns:
            True if the server responded, False otherwise
        """
        try:
            db = await self._gate.ready()
            await db.command("ping")
            return True
        except (CacheError, *DRIVER_ERRORS):
            return False

    def get_cache_stats(self) -> dict[str, Any]:
        """Get in-process cache statistics.

        Returns:
            Counters since creation or the last ``reset_stats``
        """
        lookups = self._hits + self._misses
        hit_rate = self._hits / lookups if lookups > 0 else 0.0
        return {
            "collection": self.coll,
            "state": self.state.value,
            "hits": self._hits,
            "misses": self._misses,
            "expired": self._expired,
            "sets": self._sets,
            "deletes": self._deletes,
            "clears": self._clears,
            "hit_rate": round(hit_rate, 3),
            "hit_rate_percent": round(hit_rate * 100, 1),
        }

    def reset_stats(self) -> None:
        """Reset cache statistics."""
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self._sets = 0
        self._deletes = 0
        self._clears = 0

    async def close(self) -> None:
        """Wait for pending expiry deletes and close a client this store opened.

        Handles passed in by the caller are left open.
        """
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        if self._owns_client and self.client is not None:
            await self.client.close()
            self._owns_client = False

    async def __aenter__(self) -> "MongoStore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _collection(self) -> Any:
        db = await self._gate.ready()
        return db.get_collection(self.coll, write_concern=self._write_concern)

    def _schedule_delete(self, key: str) -> None:
        task = asyncio.create_task(self._delete_expired(key))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _delete_expired(self, key: str) -> None:
        # Counted under "expired", not "deletes".
        try:
            collection = await self._collection()
            await collection.delete_one({"key": key})
        except (CacheError, *DRIVER_ERRORS) as e:
            logger.warning(f"Failed to delete expired entry {key!r} from {self.coll!r}: {e}")

    async def _connect(self) -> Any:
        """Open the connection described by the resolved target."""
        target = self._target
        if isinstance(target, ExistingHandle):
            return self._select_database(target.handle)

        if isinstance(target, ConnectionString):
            uri = target.uri
        else:
            uri = format_uri(target)

        kwargs: dict[str, Any] = dict(self.config.client_options)
        if self.config.pool_size:
            kwargs["maxPoolSize"] = self.config.pool_size
        if isinstance(target, ConnectionString) and self.config.username:
            kwargs["username"] = self.config.username
            kwargs["password"] = self.config.password

        try:
            client = AsyncMongoClient(uri, **kwargs)
        except PyMongoError as e:
            raise StoreConnectionError(f"Invalid connection settings: {e}") from e

        try:
            await client.aconnect()
            db = client.get_default_database(default=self.config.database)
            # Forces server selection and authentication up front.
            await db.command("ping")
        except PyMongoError as e:
            await client.close()
            raise StoreConnectionError(f"Unable to connect: {e}") from e

        self.client = client
        self._owns_client = True
        logger.debug(f"Connected to database {db.name!r}, collection {self.coll!r}")
        return db

    def _select_database(self, handle: Any) -> Any:
        if callable(getattr(handle, "get_collection", None)):
            return handle
        if callable(getattr(handle, "get_default_database", None)):
            try:
                return handle.get_default_database(default=self.config.database)
            except PyMongoError as e:
                raise StoreConnectionError(f"Invalid mongo connection: {e}") from e
        raise StoreConnectionError("Invalid mongo connection.")


def create_mongo_store(target: Any = None, **kwargs: Any) -> MongoStore:
    """Factory function to create a MongoStore instance.

    Args:
        target: Connection string, database/client handle, or None
        **kwargs: ``MongoCacheConfig`` fields

    Returns:
        Configured MongoStore instance

    Example:
        ```python
        import os
        from mongo_cache.backends import create_mongo_store

        store = create_mongo_store(
            os.getenv("MONGO_CACHE_URL"),
            collection="search_results",
            compression=True,
        )
        ```
    """
    return MongoStore(target, **kwargs)
