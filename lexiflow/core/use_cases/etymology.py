# lexiflow/core/use_cases/etymology.py
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from lexiflow.adapters.persistence.embedded_lexicon import EmbeddedLexicon
from lexiflow.core.domain.exceptions import InvalidRequestError
from lexiflow.core.domain.models import (
    Definition,
    EtymologyData,
    EtymologyResult,
    EtymologySource,
    ReferenceEntry,
    RelatedWords,
)
from lexiflow.core.ports.cache_port import ICache
from lexiflow.core.ports.reference_lexicon import IReferenceLexicon
from lexiflow.core.text.etymology_rules import EtymologyTextParser
from lexiflow.core.text.normalization import normalize_word
from lexiflow.core.use_cases.cache_keys import CacheKeyspace
from lexiflow.core.use_cases.inference_cascade import InferenceCascade
from lexiflow.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

ETYMOLOGY_SYSTEM_PROMPT = """You are an expert etymologist. Provide the etymology of the given word.
Respond with a single JSON object and nothing else, using exactly these keys:
{
  "origin": "language of origin, e.g. Latin",
  "originalForm": "the word in its original language",
  "meaning": "original meaning",
  "root": "root or stem",
  "rootLanguage": "language of the root",
  "cognates": [{"word": "related word", "language": "its language"}],
  "firstUse": "approximate date or century of first recorded use",
  "evolution": ["stage 1", "stage 2"]
}
Omit a key when it is unknown. Do not invent sources."""


def etymology_prompt(word: str, language: str) -> str:
    return f'Etymology for the {language} word: "{word}"'


def coerce_etymology(data: Dict[str, Any]) -> Optional[EtymologyData]:
    """
    Reads a model answer into the canonical schema. Answers that nest the
    fields under an "etymology" key are flattened first.
    """
    nested = data.get("etymology")
    if isinstance(nested, dict):
        data = {**{k: v for k, v in data.items() if k != "etymology"}, **nested}
    try:
        return EtymologyData.model_validate(data)
    except ValidationError as e:
        logger.warning("etymology_schema_mismatch", error=str(e))
        return None


class ResolveEtymology:
    """
    Use Case: Resolution Orchestrator for etymology.

    Chain, first answer wins:
    (a) embedded lexicon, never cached
    (b) edge cache
    (c) external reference lexicon, parsed with the ordered field rules
    (d) AI cascade asked for the structured object
    (e) terminal {"origin": "Unknown"}, never cached
    Answers from (c) and (d) are cached for the long etymology TTL.
    """

    def __init__(
        self,
        lexicon: EmbeddedLexicon,
        cache: ICache,
        reference: IReferenceLexicon,
        cascade: InferenceCascade,
        cache_version: str = "v1",
        ttl: int = 604800,
        parser: Optional[EtymologyTextParser] = None,
    ):
        self.lexicon = lexicon
        self.cache = cache
        self.reference = reference
        self.cascade = cascade
        self.keys = CacheKeyspace(cache, cache_version)
        self.ttl = ttl
        self.parser = parser or EtymologyTextParser()

    async def get_full_etymology(
        self, word: str, language: str = "en", bypass_cache: bool = False
    ) -> EtymologyResult:
        key_word = normalize_word(word or "")
        if not key_word:
            raise InvalidRequestError("word is required")
        language = language or "en"

        with tracer.start_as_current_span("use_case.get_full_etymology") as span:
            span.set_attribute("app.word", key_word)

            # (a)
            local = self.lexicon.get_etymology(key_word)
            if local is not None:
                span.set_attribute("app.tier", "dictionary")
                logger.info("etymology_resolved", word=key_word, tier="dictionary")
                return EtymologyResult(
                    word=key_word, language=language, etymology=local, source=EtymologySource.DICTIONARY
                )

            # (b)
            cache_key = self.keys.etymology_key(language, key_word)
            if not bypass_cache:
                hit = await self._cache_get(cache_key)
                if hit is not None:
                    span.set_attribute("app.tier", "cache")
                    logger.info("cache_hit", word=key_word, kind="etymology")
                    return hit.model_copy(update={"cached": True})

            # (c)
            entry = await self._fetch_reference(key_word, language)
            if entry is not None and entry.etymology_text:
                result = EtymologyResult(
                    word=key_word,
                    language=language,
                    etymology=self._parse_reference(entry.etymology_text),
                    definitions=entry.definitions or None,
                    pronunciations=entry.pronunciations,
                    source=EtymologySource.WIKTIONARY,
                )
                span.set_attribute("app.tier", "wiktionary")
                await self._cache_put(cache_key, result)
                return result

            # (d)
            etymology = await self._ask_model(key_word, language)
            if etymology is not None:
                result = EtymologyResult(
                    word=key_word,
                    language=language,
                    etymology=etymology,
                    definitions=(entry.definitions or None) if entry else None,
                    pronunciations=entry.pronunciations if entry else None,
                    source=EtymologySource.API,
                )
                span.set_attribute("app.tier", "api")
                await self._cache_put(cache_key, result)
                return result

            # (e)
            span.set_attribute("app.tier", "unknown")
            logger.info("etymology_unknown", word=key_word, language=language)
            return EtymologyResult(
                word=key_word, language=language, etymology=EtymologyData(), source=EtymologySource.DICTIONARY
            )

    async def get_definitions(self, word: str, language: str = "en") -> List[Definition]:
        entry = await self._fetch_reference(normalize_word(word or ""), language or "en")
        return entry.definitions if entry else []

    async def get_related_words(self, word: str, language: str = "en") -> RelatedWords:
        result = await self.get_full_etymology(word, language)
        return RelatedWords(cognates=result.etymology.cognates or [])

    # --- Tiers ---

    def _parse_reference(self, etymology_text: str) -> EtymologyData:
        parsed = self.parser.parse(etymology_text)
        if parsed.is_unknown:
            # No rule matched; the prose itself is still worth returning.
            return parsed.model_copy(update={"description": etymology_text})
        return parsed

    async def _fetch_reference(self, word: str, language: str) -> Optional[ReferenceEntry]:
        if not word:
            return None
        try:
            return await self.reference.fetch_entry(word, language)
        except Exception as e:
            logger.warning("tier_miss", tier="wiktionary", word=word, error=str(e))
            return None

    async def _ask_model(self, word: str, language: str) -> Optional[EtymologyData]:
        completion = await self.cascade.complete_json(etymology_prompt(word, language), system=ETYMOLOGY_SYSTEM_PROMPT)
        if completion is None:
            return None

        if completion.data is not None:
            etymology = coerce_etymology(completion.data)
            if etymology is not None:
                return etymology

        # Unstructured answer is kept as prose rather than dropped.
        return EtymologyData(description=completion.raw)

    async def _cache_get(self, key: str) -> Optional[EtymologyResult]:
        try:
            raw = await self.cache.get(key)
        except Exception as e:
            logger.warning("cache_read_failed", error=str(e))
            return None
        if not raw:
            return None
        try:
            return EtymologyResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    async def _cache_put(self, key: str, result: EtymologyResult) -> None:
        try:
            await self.cache.put(key, result.model_dump_json(by_alias=True, exclude_none=True), ttl=self.ttl)
        except Exception as e:
            logger.warning("cache_write_failed", error=str(e))
