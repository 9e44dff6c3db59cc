# tests/adapters/test_redis_adapters.py
import pytest
from unittest.mock import AsyncMock, ANY

from lexiflow.adapters.cache.redis_cache import RedisCache
from lexiflow.adapters.ledger.redis_ledger import RELEASE_IF_OWNER, RedisLedgerStore
from lexiflow.core.domain.models import LearnedWord


@pytest.fixture
def redis_client():
    return AsyncMock()


@pytest.mark.asyncio
class TestRedisCache:

    async def test_put_with_ttl(self, redis_client):
        cache = RedisCache("redis://localhost:6379/0", client=redis_client)

        await cache.put("v1:trans:en:es:abc", "{}", ttl=300)
        await cache.put("meta:translation_cache_version", "v2")

        redis_client.set.assert_any_await("v1:trans:en:es:abc", "{}", ex=300)
        redis_client.set.assert_any_await("meta:translation_cache_version", "v2")

    async def test_get(self, redis_client):
        redis_client.get.return_value = "cached"
        cache = RedisCache("redis://localhost:6379/0", client=redis_client)

        assert await cache.get("k") == "cached"


@pytest.mark.asyncio
class TestRedisLedgerStore:

    async def test_pending_queue_is_a_set(self, redis_client):
        """
        Scenario: The same key is queued twice.
        Expected: ZADD NX reports the second insert as a no-op.
        """
        # Arrange
        redis_client.zadd.side_effect = [1, 0]
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        # Act
        first = await store.add_pending("casa")
        second = await store.add_pending("casa")

        # Assert
        assert (first, second) == (True, False)
        redis_client.zadd.assert_awaited_with("lexiflow:queue:pending", {"casa": ANY}, nx=True)

    async def test_processing_guard(self, redis_client):
        redis_client.set.side_effect = [True, None]
        redis_client.eval.return_value = 1
        store = RedisLedgerStore("redis://localhost:6379/0", prefix="test", client=redis_client)

        token = await store.try_acquire_processing(900)
        assert token is not None
        assert await store.try_acquire_processing(900) is None
        redis_client.set.assert_awaited_with("test:lock:processing", ANY, nx=True, ex=900)
        assert redis_client.set.await_args_list[0].args == ("test:lock:processing", token)

        assert await store.release_processing(token) is True
        redis_client.eval.assert_awaited_once_with(RELEASE_IF_OWNER, 1, "test:lock:processing", token)
        redis_client.delete.assert_not_called()

    async def test_release_by_a_stale_holder_is_refused(self, redis_client):
        """
        Scenario: The guard expired and now holds another run's token.
        Expected: The compare-and-delete script removes nothing.
        """
        # Arrange
        redis_client.eval.return_value = 0
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        # Act
        released = await store.release_processing("stale-token")

        # Assert
        assert released is False
        redis_client.eval.assert_awaited_once_with(RELEASE_IF_OWNER, 1, "lexiflow:lock:processing", "stale-token")

    async def test_total_learned_is_atomic(self, redis_client):
        redis_client.hincrby.return_value = 5
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        assert await store.increment_total_learned() == 5
        redis_client.hincrby.assert_awaited_once_with("lexiflow:meta:stats", "total_learned", 1)

    async def test_stats(self, redis_client):
        redis_client.hgetall.return_value = {
            "total_learned": "12",
            "last_pr_number": "42",
            "last_sync_to_repo": "2024-05-01T12:00:00+00:00",
        }
        redis_client.zcard.return_value = 3
        redis_client.exists.return_value = 0
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        stats = await store.get_stats()

        assert (stats.total_learned, stats.pending_count, stats.last_pr_number) == (12, 3, 42)
        assert stats.is_processing is False
        assert stats.last_sync_to_repo.year == 2024

    async def test_word_records(self, redis_client):
        record = LearnedWord(word="casa", translations={"es": "house"})
        redis_client.mget.return_value = [record.model_dump_json(by_alias=True), None]
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        await store.put_word(record)
        words = await store.get_words(["casa", "gato"])

        redis_client.set.assert_awaited_once_with("lexiflow:word:casa", ANY)
        assert [w.word for w in words] == ["casa"]

    async def test_corrupt_config_is_ignored(self, redis_client):
        redis_client.get.return_value = "{not json"
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        assert await store.get_config_overrides() == {}

    async def test_close_releases_client(self, redis_client):
        store = RedisLedgerStore("redis://localhost:6379/0", client=redis_client)

        await store.close()

        redis_client.aclose.assert_awaited_once()
        assert store._redis is None
