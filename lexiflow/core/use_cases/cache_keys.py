# lexiflow/core/use_cases/cache_keys.py
import uuid

import structlog

from lexiflow.core.ports.cache_port import ICache
from lexiflow.core.text.normalization import fingerprint

logger = structlog.get_logger()

# Holds the current translation version token; never expires.
TRANSLATION_VERSION_KEY = "meta:translation_cache_version"


class CacheKeyspace:
    """
    Builds versioned cache keys.

    Translation keys: `{version}:trans:{from}:{to}:{fingerprint}`
    Etymology keys:   `{base}:etym:{lang}:{word}`

    The translation version token lives in the cache itself so every
    handler sees the same value. Bumping it orphans every older key
    without deleting anything; orphans simply expire with their TTL.
    """

    def __init__(self, cache: ICache, base_version: str = "v1"):
        self.cache = cache
        self.base_version = base_version

    async def translation_version(self) -> str:
        try:
            token = await self.cache.get(TRANSLATION_VERSION_KEY)
        except Exception as e:
            logger.warning("cache_version_read_failed", error=str(e))
            token = None
        return token or self.base_version

    async def translation_key(self, from_lang: str, to_lang: str, text: str) -> str:
        version = await self.translation_version()
        return f"{version}:trans:{from_lang}:{to_lang}:{fingerprint(text)}"

    def etymology_key(self, lang: str, word: str) -> str:
        return f"{self.base_version}:etym:{lang}:{word}"

    async def bump_translation_version(self) -> str:
        token = f"{self.base_version}.{uuid.uuid4().hex[:12]}"
        await self.cache.put(TRANSLATION_VERSION_KEY, token, ttl=None)
        logger.info("translation_cache_invalidated", version=token)
        return token
