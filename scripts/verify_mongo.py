import asyncio
import os
from mongo_cache import MongoStore

async def main():
    url = os.environ.get("MONGO_CACHE_URL")
    if not url:
        print("❌ MONGO_CACHE_URL not set")
        return

    print("init store...")
    store = MongoStore(url, collection="verify_mongo", compression=True)

    print("health check...")
    if not await store.health_check():
        print("❌ MongoDB not reachable")
        return
    print("✅ Connected")

    print("round trip...")
    await store.set("verify", b"hello world" * 1000)
    value = await store.get("verify")
    print(f"✅ Read back {len(value)} bytes")

    await store.clear()
    await store.close()

if __name__ == "__main__":
    asyncio.run(main())
