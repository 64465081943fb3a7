"""Shared fixtures for the secure cache tests."""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from foi_session.data import ScratchSession
from foi_session.vault import (
    CacheConfig,
    MemoryStorage,
    SecureDocumentCache,
    SessionKeyManager,
)


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class BlockingKeysStorage(MemoryStorage):
    """Storage whose key listing takes its snapshot, then waits for release."""

    def __init__(self):
        super().__init__()
        self.listed = asyncio.Event()
        self.release = asyncio.Event()

    async def keys(self, prefix: str = "") -> list[str]:
        snapshot = await super().keys(prefix)
        self.listed.set()
        await self.release.wait()
        return snapshot


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def blocking_storage():
    return BlockingKeysStorage()


@pytest.fixture
def key_manager():
    return SessionKeyManager()


@pytest.fixture
def scratch():
    return ScratchSession()


@pytest.fixture
def config():
    return CacheConfig(key_prefix="foi_secure_", entry_ttl=8 * 60 * 60)


@pytest.fixture
def cache(storage, key_manager, scratch, config, clock):
    return SecureDocumentCache(
        storage=storage,
        key_manager=key_manager,
        scratch=scratch,
        config=config,
        clock=clock,
    )
