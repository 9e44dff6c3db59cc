# lexiflow/adapters/ledger/memory_ledger.py
import asyncio
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from lexiflow.core.domain.models import LearnedWord, LearningStats


class InMemoryLedgerStore:
    """
    Single-process ledger store.

    The processing guard is a test-and-set under an `asyncio.Lock`, with the
    same TTL semantics as the Redis store.
    """

    def __init__(self) -> None:
        self._words: Dict[str, str] = {}
        # Insertion-ordered; dict keys give set semantics.
        self._pending: Dict[str, float] = {}
        self._total_learned = 0
        self._last_sync: Optional[datetime] = None
        self._last_pr_number: Optional[int] = None
        self._config: Dict[str, Any] = {}
        self._guard = asyncio.Lock()
        self._processing_until: Optional[float] = None
        self._processing_token: Optional[str] = None

    # --- Records ---

    async def get_word(self, key: str) -> Optional[LearnedWord]:
        raw = self._words.get(key)
        return LearnedWord.model_validate_json(raw) if raw else None

    async def get_words(self, keys: Sequence[str]) -> List[LearnedWord]:
        return [LearnedWord.model_validate_json(self._words[k]) for k in keys if k in self._words]

    async def put_word(self, record: LearnedWord) -> None:
        # Stored serialized so callers never share a mutable instance.
        self._words[record.word] = record.model_dump_json(by_alias=True)

    # --- Pending Queue ---

    async def add_pending(self, key: str) -> bool:
        if key in self._pending:
            return False
        self._pending[key] = time.time()
        return True

    async def pending_keys(self) -> List[str]:
        return list(self._pending)

    async def pending_count(self) -> int:
        return len(self._pending)

    async def remove_pending(self, keys: Sequence[str]) -> None:
        for key in keys:
            self._pending.pop(key, None)

    # --- Stats ---

    async def increment_total_learned(self, amount: int = 1) -> int:
        self._total_learned += amount
        return self._total_learned

    async def get_stats(self) -> LearningStats:
        return LearningStats(
            total_learned=self._total_learned,
            pending_count=len(self._pending),
            last_sync_to_repo=self._last_sync,
            last_pr_number=self._last_pr_number,
            is_processing=await self.is_processing(),
        )

    async def record_sync(self, pr_number: int, synced_at: datetime) -> None:
        self._last_pr_number = pr_number
        self._last_sync = synced_at

    # --- Config ---

    async def get_config_overrides(self) -> Dict[str, Any]:
        return dict(self._config)

    async def set_config_overrides(self, overrides: Dict[str, Any]) -> None:
        self._config = dict(overrides)

    # --- Processing Guard ---

    async def try_acquire_processing(self, ttl_seconds: int) -> Optional[str]:
        async with self._guard:
            now = time.monotonic()
            if self._processing_until is not None and self._processing_until > now:
                return None
            self._processing_until = now + ttl_seconds
            self._processing_token = uuid.uuid4().hex
            return self._processing_token

    async def release_processing(self, token: str) -> bool:
        async with self._guard:
            if token != self._processing_token:
                return False
            self._processing_until = None
            self._processing_token = None
            return True

    async def is_processing(self) -> bool:
        until = self._processing_until
        return until is not None and until > time.monotonic()
