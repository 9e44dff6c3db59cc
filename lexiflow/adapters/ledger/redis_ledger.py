# lexiflow/adapters/ledger/redis_ledger.py
import json
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from redis.asyncio import Redis, from_url

from lexiflow.core.domain.models import LearnedWord, LearningStats

logger = structlog.get_logger()

# Deletes the guard only while it still holds the caller's token.
RELEASE_IF_OWNER = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisLedgerStore:
    """
    Ledger store over Redis.

    Key layout (`{prefix}` defaults to "lexiflow"):
      {prefix}:word:{word}       JSON LearnedWord, last write wins
      {prefix}:queue:pending     sorted set, score = first queued time
      {prefix}:meta:stats        hash (total_learned, last_sync_to_repo, last_pr_number)
      {prefix}:meta:config       JSON LearningConfig overrides
      {prefix}:lock:processing   contribution guard, SET NX EX holding an owner token
    """

    def __init__(self, redis_url: str, prefix: str = "lexiflow", client: Optional[Redis] = None) -> None:
        self.redis_url = redis_url
        self.prefix = prefix
        self._redis: Optional[Redis] = client

    async def connect(self) -> Redis:
        if self._redis is None:
            logger.info("redis_ledger_connecting", url=self.redis_url)
            self._redis = from_url(self.redis_url, decode_responses=True)
        return self._redis

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    def _key(self, *parts: str) -> str:
        return ":".join((self.prefix, *parts))

    @property
    def _queue_key(self) -> str:
        return self._key("queue", "pending")

    @property
    def _stats_key(self) -> str:
        return self._key("meta", "stats")

    @property
    def _lock_key(self) -> str:
        return self._key("lock", "processing")

    # --- Records ---

    async def get_word(self, key: str) -> Optional[LearnedWord]:
        redis = await self.connect()
        raw = await redis.get(self._key("word", key))
        return LearnedWord.model_validate_json(raw) if raw else None

    async def get_words(self, keys: Sequence[str]) -> List[LearnedWord]:
        if not keys:
            return []
        redis = await self.connect()
        raws = await redis.mget([self._key("word", k) for k in keys])
        return [LearnedWord.model_validate_json(raw) for raw in raws if raw]

    async def put_word(self, record: LearnedWord) -> None:
        redis = await self.connect()
        await redis.set(self._key("word", record.word), record.model_dump_json(by_alias=True))

    # --- Pending Queue ---

    async def add_pending(self, key: str) -> bool:
        redis = await self.connect()
        added = await redis.zadd(self._queue_key, {key: time.time()}, nx=True)
        return bool(added)

    async def pending_keys(self) -> List[str]:
        redis = await self.connect()
        return list(await redis.zrange(self._queue_key, 0, -1))

    async def pending_count(self) -> int:
        redis = await self.connect()
        return int(await redis.zcard(self._queue_key))

    async def remove_pending(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        redis = await self.connect()
        await redis.zrem(self._queue_key, *keys)

    # --- Stats ---

    async def increment_total_learned(self, amount: int = 1) -> int:
        redis = await self.connect()
        return int(await redis.hincrby(self._stats_key, "total_learned", amount))

    async def get_stats(self) -> LearningStats:
        redis = await self.connect()
        raw = await redis.hgetall(self._stats_key) or {}
        last_sync = raw.get("last_sync_to_repo")
        last_pr = raw.get("last_pr_number")
        return LearningStats(
            total_learned=int(raw.get("total_learned", 0)),
            pending_count=await self.pending_count(),
            last_sync_to_repo=datetime.fromisoformat(last_sync) if last_sync else None,
            last_pr_number=int(last_pr) if last_pr else None,
            is_processing=await self.is_processing(),
        )

    async def record_sync(self, pr_number: int, synced_at: datetime) -> None:
        redis = await self.connect()
        await redis.hset(
            self._stats_key,
            mapping={"last_pr_number": pr_number, "last_sync_to_repo": synced_at.isoformat()},
        )

    # --- Config ---

    async def get_config_overrides(self) -> Dict[str, Any]:
        redis = await self.connect()
        raw = await redis.get(self._key("meta", "config"))
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("ledger_config_corrupt", key=self._key("meta", "config"))
            return {}
        return data if isinstance(data, dict) else {}

    async def set_config_overrides(self, overrides: Dict[str, Any]) -> None:
        redis = await self.connect()
        await redis.set(self._key("meta", "config"), json.dumps(overrides))

    # --- Processing Guard ---

    async def try_acquire_processing(self, ttl_seconds: int) -> Optional[str]:
        redis = await self.connect()
        token = uuid.uuid4().hex
        acquired = await redis.set(self._lock_key, token, nx=True, ex=ttl_seconds)
        return token if acquired else None

    async def release_processing(self, token: str) -> bool:
        redis = await self.connect()
        released = await redis.eval(RELEASE_IF_OWNER, 1, self._lock_key, token)
        if not released:
            logger.warning("processing_guard_lost", key=self._lock_key)
        return bool(released)

    async def is_processing(self) -> bool:
        redis = await self.connect()
        return bool(await redis.exists(self._lock_key))
