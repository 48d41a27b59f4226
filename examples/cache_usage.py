"""Example usage of mongo-cache."""

import asyncio
import hashlib
import os

from mongo_cache import MongoCacheConfig, MongoStore, StoreConnectionError


async def main() -> None:
    """Store, read, expire and flush a few entries."""
    config = MongoCacheConfig.from_env(collection="example_bucket", compression=True)

    async with MongoStore(config) as store:
        try:
            await store.ready()
        except StoreConnectionError as e:
            print(f"❌ Could not connect: {e}")
            return

        # Structured values are stored as BSON documents
        await store.set("user:42", {"name": "Ada", "plan": "pro"}, ttl=120)
        print(f"user:42 -> {await store.get('user:42')}")

        # Falsy values round-trip; use exists() to tell a stored None from a miss
        await store.set("flag", False)
        await store.set("nothing", None)
        print(f"flag -> {await store.get('flag')!r}")
        print(f"nothing exists: {await store.exists('nothing')}")
        print(f"missing exists: {await store.exists('missing')}")

        # Binary values are gzipped transparently when compression is on
        blob = os.urandom(64) * 4096
        await store.set("blob", blob)
        restored = await store.get("blob")
        same = hashlib.md5(restored).hexdigest() == hashlib.md5(blob).hexdigest()
        print(f"blob restored intact: {same}")

        # Entries expire lazily on read
        await store.set("short", "lived", ttl=1)
        await asyncio.sleep(1.1)
        print(f"short -> {await store.get('short')!r}")

        await store.clear()
        print(f"stats: {store.get_cache_stats()}")


if __name__ == "__main__":
    asyncio.run(main())
