# lexiflow/core/ports/ledger_store.py
from datetime import datetime
from typing import Protocol, Optional, Dict, Any, List, Sequence

from lexiflow.core.domain.models import LearnedWord, LearningStats


class ILedgerStore(Protocol):
    """
    State store behind the Learned Word Ledger.

    Consistency contract:
    - Word records are single-key documents, last write wins.
    - The pending queue is a set; `add_pending` is atomic and idempotent.
    - `try_acquire_processing` is an atomic compare-and-set with a TTL, so
      at most one holder exists and a crashed holder eventually expires.
      It returns an owner token; `release_processing` only frees the guard
      while that token still holds it.
    - Records, queue and counters are committed independently. Stats may
      lag behind the queue; the queue and records are authoritative.
    """

    async def get_word(self, key: str) -> Optional[LearnedWord]:
        ...

    async def get_words(self, keys: Sequence[str]) -> List[LearnedWord]:
        """Returns the records that exist, in the order of `keys`."""
        ...

    async def put_word(self, record: LearnedWord) -> None:
        ...

    async def add_pending(self, key: str) -> bool:
        """Returns True when the key was not already queued."""
        ...

    async def pending_keys(self) -> List[str]:
        """Queued keys, oldest first."""
        ...

    async def pending_count(self) -> int:
        ...

    async def remove_pending(self, keys: Sequence[str]) -> None:
        ...

    async def increment_total_learned(self, amount: int = 1) -> int:
        ...

    async def get_stats(self) -> LearningStats:
        ...

    async def record_sync(self, pr_number: int, synced_at: datetime) -> None:
        ...

    async def get_config_overrides(self) -> Dict[str, Any]:
        ...

    async def set_config_overrides(self, overrides: Dict[str, Any]) -> None:
        ...

    async def try_acquire_processing(self, ttl_seconds: int) -> Optional[str]:
        """Returns the owner token, or None when another holder has the guard."""
        ...

    async def release_processing(self, token: str) -> bool:
        ...

    async def is_processing(self) -> bool:
        ...
