"""Pytest configuration and fixtures."""

import asyncio
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from mongo_cache import MongoStore


class FakeCollection:
    """In-memory stand-in for an AsyncCollection keyed on ``key``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.documents: dict[str, dict[str, Any]] = {}
        self.write_concern = None

    async def find_one(self, filter: dict[str, Any], projection: Optional[dict[str, Any]] = None):
        await asyncio.sleep(0)
        document = self.documents.get(filter["key"])
        if document is None:
            return None
        document = {"_id": f"id-{filter['key']}", **document}
        if projection:
            return {k: v for k, v in document.items() if k == "_id" or k in projection}
        return document

    async def replace_one(self, filter: dict[str, Any], replacement: dict[str, Any], upsert: bool = False):
        await asyncio.sleep(0)
        key = filter["key"]
        if key in self.documents or upsert:
            self.documents[key] = dict(replacement)

    async def delete_one(self, filter: dict[str, Any]):
        await asyncio.sleep(0)
        self.documents.pop(filter["key"], None)

    async def delete_many(self, filter: dict[str, Any]):
        await asyncio.sleep(0)
        assert filter == {}
        self.documents.clear()


class FakeDatabase:
    """In-memory stand-in for an AsyncDatabase."""

    def __init__(self, name: str = "cache") -> None:
        self.name = name
        self.collections: dict[str, FakeCollection] = {}
        self.commands: list[str] = []

    def get_collection(self, name: str, write_concern: Any = None) -> FakeCollection:
        collection = self.collections.setdefault(name, FakeCollection(name))
        collection.write_concern = write_concern
        return collection

    async def command(self, name: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.commands.append(name)
        return {"ok": 1.0}


@pytest.fixture
def fake_db():
    """Empty in-memory database."""
    return FakeDatabase()


@pytest.fixture
def store(fake_db):
    """Store bound to the in-memory database."""
    return MongoStore(fake_db, collection="test_bucket")


@pytest.fixture
def compressed_store(fake_db):
    """Store bound to the in-memory database with compression enabled."""
    return MongoStore(fake_db, collection="test_bucket", compression=True)


@pytest.fixture
def mongo_client(mocker, fake_db):
    """Patch AsyncMongoClient so connecting yields the in-memory database."""
    client = MagicMock()
    client.aconnect = AsyncMock()
    client.close = AsyncMock()
    client.get_default_database.return_value = fake_db
    client_cls = mocker.patch(
        "mongo_cache.backends.mongo_backend.AsyncMongoClient", return_value=client
    )
    return client_cls
