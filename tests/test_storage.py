"""
Tests for the cache storage backends.

Tests cover:
- MemoryStorage get/set/delete/keys
- RedisStorage over a redis.asyncio-compatible client
"""
import fnmatch

import pytest

from foi_session.vault import MemoryStorage, RedisStorage, SecureDocumentCache


class FakeRedis:
    """Minimal async stand-in for a redis.asyncio client."""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.matches = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def scan_iter(self, match=None, count=None):
        self.matches.append(match)
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key.encode("utf-8")


# --- Test MemoryStorage ---

class TestMemoryStorage:
    """Tests for the in-process backend."""

    async def test_set_get(self):
        """Test a stored value is returned."""
        storage = MemoryStorage()
        await storage.set("a", b"1")
        assert await storage.get("a") == b"1"
        assert await storage.get("b") is None

    async def test_delete_is_idempotent(self):
        """Test deleting twice does not fail."""
        storage = MemoryStorage()
        await storage.set("a", b"1")
        await storage.delete("a")
        await storage.delete("a")
        assert len(storage) == 0

    async def test_keys_by_prefix(self):
        """Test keys filters on prefix."""
        storage = MemoryStorage()
        for key in ("foi_secure_1", "foi_secure_2", "other"):
            await storage.set(key, b"x")
        assert sorted(await storage.keys("foi_secure_")) == [
            "foi_secure_1", "foi_secure_2",
        ]
        assert len(await storage.keys()) == 3


# --- Test RedisStorage ---

class TestRedisStorage:
    """Tests for the Redis-backed storage."""

    @pytest.fixture
    def redis(self):
        return FakeRedis()

    async def test_set_with_ttl_uses_setex(self, redis):
        """Test a TTL write goes through SETEX."""
        storage = RedisStorage(redis)
        await storage.set("k", b"v", ttl=300)
        assert redis.ttls["k"] == 300
        assert await storage.get("k") == b"v"

    async def test_set_without_ttl(self, redis):
        """Test a write without TTL uses SET."""
        storage = RedisStorage(redis)
        await storage.set("k", b"v")
        assert "k" not in redis.ttls
        assert redis.data["k"] == b"v"

    async def test_str_values_returned_as_bytes(self, redis):
        """Test clients with decode_responses still yield bytes."""
        redis.data["k"] = "text"
        assert await RedisStorage(redis).get("k") == b"text"

    async def test_keys_decoded(self, redis):
        """Test scanned keys are decoded to str."""
        storage = RedisStorage(redis)
        await storage.set("foi_secure_doc", b"v")
        await storage.set("unrelated", b"v")
        assert await storage.keys("foi_secure_") == ["foi_secure_doc"]
        assert redis.matches[-1] == "foi_secure_*"

    async def test_glob_characters_escaped(self, redis):
        """Test glob metacharacters in the prefix are escaped."""
        await RedisStorage(redis).keys("foi*secure?")
        assert redis.matches[-1] == r"foi\*secure\?*"

    async def test_cache_over_redis(self, redis, config, clock):
        """Test the secure cache works end to end over Redis."""
        cache = SecureDocumentCache(
            storage=RedisStorage(redis), config=config, clock=clock,
        )
        await cache.cache_document("doc-1", b"hello")
        assert redis.ttls["foi_secure_doc-1"] == config.entry_ttl
        assert await cache.get_cached_document("doc-1") == b"hello"
        await cache.panic_clear()
        assert redis.data == {}
