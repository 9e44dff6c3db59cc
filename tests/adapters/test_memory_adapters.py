# tests/adapters/test_memory_adapters.py
import time

import pytest

from lexiflow.adapters.cache.memory_cache import InMemoryCache
from lexiflow.adapters.ledger.memory_ledger import InMemoryLedgerStore


@pytest.mark.asyncio
class TestInMemoryCache:

    async def test_expired_entries_are_dropped(self):
        cache = InMemoryCache()
        await cache.put("fresh", "a", ttl=60)
        await cache.put("forever", "b")
        await cache.put("stale", "c", ttl=60)
        cache._data["stale"] = ("c", time.monotonic() - 1)

        assert await cache.get("fresh") == "a"
        assert await cache.get("forever") == "b"
        assert await cache.get("stale") is None
        assert len(cache) == 2


@pytest.mark.asyncio
class TestInMemoryLedgerStore:

    async def test_guard_is_exclusive(self):
        store = InMemoryLedgerStore()

        token = await store.try_acquire_processing(60)
        assert token is not None
        assert await store.try_acquire_processing(60) is None
        assert await store.is_processing() is True

        assert await store.release_processing(token) is True
        assert await store.try_acquire_processing(60) is not None

    async def test_guard_expires(self):
        store = InMemoryLedgerStore()
        await store.try_acquire_processing(0)

        assert await store.is_processing() is False
        assert await store.try_acquire_processing(60) is not None

    async def test_expired_holder_cannot_release_the_next_holder(self):
        """
        Scenario: A holder outlives its TTL and a second run takes the guard.
        Expected: The late release is refused and the second run keeps the guard.
        """
        # Arrange
        store = InMemoryLedgerStore()
        stale = await store.try_acquire_processing(0)
        current = await store.try_acquire_processing(60)

        # Act
        released = await store.release_processing(stale)

        # Assert
        assert released is False
        assert await store.is_processing() is True
        assert await store.release_processing(current) is True

    async def test_pending_queue_keeps_insertion_order(self):
        store = InMemoryLedgerStore()
        for key in ["gato", "casa", "gato"]:
            await store.add_pending(key)

        assert await store.pending_keys() == ["gato", "casa"]
        await store.remove_pending(["gato", "perro"])
        assert await store.pending_keys() == ["casa"]
