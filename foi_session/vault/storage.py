"""
Cache Storage — async key-value backends the secure cache persists through.

Values are opaque bytes (orjson-encoded cache records). Backends never see
plaintext.
"""
import re
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

# Redis glob metacharacters that must be escaped in a SCAN match prefix.
_GLOB_SPECIAL = re.compile(r"[*?\[\]\\]")


class BaseStorage(ABC):
    """Abstract key-value storage."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Store ``value`` under ``key``, overwriting. ``ttl`` in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. No-op if absent."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""


class MemoryStorage(BaseStorage):
    """In-process storage; lives as long as the process.

    Yields to the event loop on every call, like any real backend would.
    """

    def __init__(self):
        self._items: dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        await asyncio.sleep(0)
        return self._items.get(key)

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        await asyncio.sleep(0)
        self._items[key] = value

    async def delete(self, key: str) -> None:
        await asyncio.sleep(0)
        self._items.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        await asyncio.sleep(0)
        return [k for k in self._items if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._items)


class RedisStorage(BaseStorage):
    """Storage over a redis.asyncio-compatible client.

    Entries written with a TTL use ``SETEX`` so Redis drops them on its own
    once they expire; lazy expiry in the cache still applies on read.
    """

    def __init__(self, redis: Any, scan_count: int = 100):
        self._redis = redis
        self._scan_count = scan_count

    async def get(self, key: str) -> Optional[bytes]:
        value = await self._redis.get(key)
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        if ttl:
            await self._redis.setex(key, ttl, value)
        else:
            await self._redis.set(key, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def keys(self, prefix: str = "") -> list[str]:
        found: list[str] = []
        pattern = _GLOB_SPECIAL.sub(r"\\\g<0>", prefix) + "*"
        async for key in self._redis.scan_iter(
            match=pattern, count=self._scan_count,
        ):
            if isinstance(key, bytes):
                key = key.decode("utf-8")
            found.append(key)
        return found
