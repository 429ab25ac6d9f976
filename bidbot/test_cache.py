import unittest

from bidbot.cache import CacheStore, HistoryStore, MemoryBackend


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class BrokenBackend:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def setex(self, key, ttl, value):
        raise ConnectionError("redis down")

    async def keys(self, pattern="*"):
        raise ConnectionError("redis down")

    async def delete(self, *keys):
        raise ConnectionError("redis down")

    async def ping(self):
        raise ConnectionError("redis down")


class CacheStoreTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = CacheStore(MemoryBackend(clock=self.clock))

    async def test_set_then_get_until_expiry(self):
        await self.cache.set("search:abc", {"projects": [1, 2]}, ttl=1800)
        self.assertEqual(await self.cache.get("search:abc"), {"projects": [1, 2]})

        self.clock.now += 1799
        self.assertIsNotNone(await self.cache.get("search:abc"))
        self.clock.now += 1
        self.assertIsNone(await self.cache.get("search:abc"))

    async def test_last_write_wins(self):
        await self.cache.set("k", "first", ttl=60)
        await self.cache.set("k", "second", ttl=60)
        self.assertEqual(await self.cache.get("k"), "second")

    async def test_clear_by_pattern(self):
        await self.cache.set("search:1", 1, ttl=60)
        await self.cache.set("search:2", 2, ttl=60)
        await self.cache.set("proposal_history:7", [], ttl=60)
        removed = await self.cache.clear("search:*")
        self.assertEqual(removed, 2)
        self.assertIsNone(await self.cache.get("search:1"))
        self.assertEqual(await self.cache.get("proposal_history:7"), [])

    async def test_backend_failures_are_misses(self):
        cache = CacheStore(BrokenBackend())
        self.assertIsNone(await cache.get("k"))
        self.assertFalse(await cache.set("k", 1, ttl=10))
        self.assertEqual(await cache.clear(), 0)
        self.assertFalse(await cache.ping())
        await cache.delete("k")

    def test_from_url_without_redis_uses_memory(self):
        self.assertEqual(CacheStore.from_url(None).backend_name, "memory")


class HistoryStoreTests(unittest.IsolatedAsyncioTestCase):
    async def test_push_is_newest_first_and_capped(self):
        history = HistoryStore(CacheStore(MemoryBackend()))
        for i in range(5):
            await history.push("search_history:1", {"n": i}, limit=3, ttl=60)
        recent = await history.recent("search_history:1")
        self.assertEqual([e["n"] for e in recent], [4, 3, 2])
        self.assertEqual(len(await history.recent("search_history:1", limit=2)), 2)
        self.assertEqual(await history.recent("search_history:missing"), [])


if __name__ == "__main__":
    unittest.main()
