# lexiflow/core/ports/cache_port.py
from typing import Protocol, Optional


class ICache(Protocol):
    """
    Port for the edge key-value cache.
    Values are serialized strings; expiry is handled by the backend.
    """

    async def get(self, key: str) -> Optional[str]:
        """Returns the stored value, or None when missing or expired."""
        ...

    async def put(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Stores a value. `ttl` is in seconds; None means no expiry."""
        ...
