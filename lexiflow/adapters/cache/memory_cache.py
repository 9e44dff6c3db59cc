# lexiflow/adapters/cache/memory_cache.py
import time
from typing import Dict, Optional, Tuple


class InMemoryCache:
    """
    Process-local TTL cache. Used in development and tests; expired entries
    are dropped lazily on read.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= time.monotonic():
            self._data.pop(key, None)
            return None
        return value

    async def put(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        self._data[key] = (value, expires_at)

    def __len__(self) -> int:
        return len(self._data)
