# lexiflow/core/use_cases/translate.py
import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import ValidationError

from lexiflow.adapters.persistence.embedded_lexicon import EmbeddedLexicon
from lexiflow.core.domain.exceptions import InvalidRequestError
from lexiflow.core.domain.models import (
    BatchTranslationResult,
    DictionaryEntry,
    TranslationResult,
    TranslationSource,
    WordTranslation,
)
from lexiflow.core.ports.cache_port import ICache
from lexiflow.core.ports.dictionary_repository import IDictionaryRepository
from lexiflow.core.text.languages import AUTO, language_name
from lexiflow.core.text.normalization import detect_language, normalize_text, normalize_word, tokenize
from lexiflow.core.use_cases.cache_keys import CacheKeyspace
from lexiflow.core.use_cases.contribution import ContributionTrigger
from lexiflow.core.use_cases.inference_cascade import InferenceCascade
from lexiflow.core.use_cases.learned_words import LearnedWordLedger
from lexiflow.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

WHOLE_TEXT_MAX_TOKENS = 10
LEARNED_AI_CONFIDENCE = 0.7


def translation_prompt(from_lang: str, to_lang: str, context: Optional[str] = None) -> str:
    prompt = (
        f"You are a professional translator. Translate the following text from "
        f"{language_name(from_lang)} to {language_name(to_lang)}."
    )
    if context:
        prompt += f" Context: {context}."
    return prompt + " Return only the translated text."


class TranslateText:
    """
    Use Case: Resolution Orchestrator for translation.

    Tier order:
    1. Edge cache (the only short-circuit; skipped on explicit bypass).
    2. Whole-text dictionary resolution, all-or-nothing, for short English
       or auto-detected input (embedded lexicon, then relational store).
    3. Per-token partial resolution, kept only as hints.
    4. AI cascade on the full original text.
    Every exit path is cached. Tokens that only the AI resolved are
    reported to the learned word ledger.
    """

    def __init__(
        self,
        lexicon: EmbeddedLexicon,
        cache: ICache,
        cascade: InferenceCascade,
        dictionary: Optional[IDictionaryRepository] = None,
        ledger: Optional[LearnedWordLedger] = None,
        trigger: Optional[ContributionTrigger] = None,
        cache_version: str = "v1",
        cache_ttl: int = 86400,
        unresolved_ttl: int = 300,
        max_text_length: int = 5000,
        max_batch: int = 50,
    ):
        self.lexicon = lexicon
        self.cache = cache
        self.cascade = cascade
        self.dictionary = dictionary
        self.ledger = ledger
        self.trigger = trigger
        self.keys = CacheKeyspace(cache, cache_version)
        self.cache_ttl = cache_ttl
        self.unresolved_ttl = unresolved_ttl
        self.max_text_length = max_text_length
        self.max_batch = max_batch

    async def translate(
        self,
        text: str,
        to: str,
        from_lang: str = AUTO,
        context: Optional[str] = None,
        bypass_cache: bool = False,
    ) -> TranslationResult:
        if not isinstance(text, str) or not text.strip():
            raise InvalidRequestError("text is required")
        if not to:
            raise InvalidRequestError("target language 'to' is required")
        from_lang = from_lang or AUTO

        with tracer.start_as_current_span("use_case.translate") as span:
            normalized = normalize_text(text, self.max_text_length)
            key = await self.keys.translation_key(from_lang, to, normalized)
            span.set_attribute("app.to", to)

            if not bypass_cache:
                hit = await self._cache_get(key)
                if hit is not None:
                    span.set_attribute("app.tier", "cache")
                    logger.info("cache_hit", to=to, source=hit.source.value)
                    return hit.model_copy(update={"cached": True, "source": TranslationSource.CACHE})

            tokens = tokenize(normalized)
            whole_text = len(tokens) <= WHOLE_TEXT_MAX_TOKENS and from_lang in ("en", AUTO)
            hints, phrase = await self._resolve_tokens(tokens, to, with_phrase=whole_text)

            result = None
            if whole_text:
                result = self._resolve_whole_text(normalized, tokens, hints, phrase, from_lang, to)

            if result is None:
                result = await self._resolve_with_ai(normalized, tokens, hints, from_lang, to, context)

            span.set_attribute("app.tier", result.source.value)
            ttl = self.unresolved_ttl if result.source == TranslationSource.UNRESOLVED else self.cache_ttl
            await self._cache_put(key, result, ttl)
            return result

    async def translate_batch(
        self, texts: Sequence[str], to: str, from_lang: str = AUTO
    ) -> BatchTranslationResult:
        if not isinstance(texts, (list, tuple)) or not to:
            raise InvalidRequestError("texts array and to language required")
        if len(texts) > self.max_batch:
            raise InvalidRequestError(f"Maximum {self.max_batch} texts per batch")
        if any(not isinstance(t, str) or not t.strip() for t in texts):
            raise InvalidRequestError("every text in a batch must be a non-empty string")

        results = await asyncio.gather(*(self.translate(t, to, from_lang) for t in texts))
        return BatchTranslationResult(translations=list(results), count=len(results))

    async def clear_translation_cache(self) -> str:
        """Logical invalidation: new version token, nothing is deleted."""
        return await self.keys.bump_translation_version()

    # --- Tiers ---

    async def _resolve_tokens(
        self, tokens: List[str], to: str, with_phrase: bool = False
    ) -> Tuple[List[Optional[WordTranslation]], Optional[DictionaryEntry]]:
        """
        Per-token lookup in the lexicon, then one batched relational query for
        the misses. With `with_phrase`, multi-word headwords ("thank you") are
        looked up as well, in the same query.
        """
        hints: List[Optional[WordTranslation]] = [self.lexicon.translate_word(t, to) for t in tokens]
        missing = [t for t, hint in zip(tokens, hints) if hint is None]

        phrase_key = " ".join(tokens) if with_phrase and len(tokens) > 1 else None
        phrase = self.lexicon.lookup(phrase_key) if phrase_key else None

        query = list(missing)
        if phrase_key and phrase is None and missing:
            query.append(phrase_key)
        if not query or self.dictionary is None:
            return hints, phrase

        entries = await self._relational_lookup(query)
        if phrase_key and phrase is None:
            phrase = entries.get(normalize_word(phrase_key))

        for i, token in enumerate(tokens):
            if hints[i] is not None:
                continue
            entry = entries.get(normalize_word(token))
            if entry is not None and entry.translate(to) is not None:
                hints[i] = WordTranslation(
                    original=token,
                    translated=entry.translate(to),
                    source=TranslationSource.DICTIONARY.value,
                    has_etymology=entry.etymology is not None,
                )
        return hints, phrase

    def _resolve_whole_text(
        self,
        normalized: str,
        tokens: List[str],
        hints: List[Optional[WordTranslation]],
        phrase: Optional[DictionaryEntry],
        from_lang: str,
        to: str,
    ) -> Optional[TranslationResult]:
        """All-or-nothing: a phrase hit, or every token resolved."""
        if phrase is not None and phrase.translate(to) is not None:
            logger.info("dictionary_phrase_hit", to=to)
            return self._dictionary_result(normalized, phrase, from_lang, to)

        if not tokens or any(h is None for h in hints):
            logger.info("tier_miss", tier="dictionary", unresolved=sum(h is None for h in hints))
            return None

        return TranslationResult(
            original=normalized,
            translated=" ".join(h.translated for h in hints),
            from_lang=from_lang,
            to=to,
            source=TranslationSource.DICTIONARY,
            words=list(hints),
        )

    async def _resolve_with_ai(
        self,
        normalized: str,
        tokens: List[str],
        hints: List[Optional[WordTranslation]],
        from_lang: str,
        to: str,
        context: Optional[str],
    ) -> TranslationResult:
        completion = await self.cascade.complete(normalized, system=translation_prompt(from_lang, to, context))

        if completion is None:
            logger.warning("translation_unresolved", to=to, tokens=len(tokens))
            return TranslationResult(
                original=normalized,
                translated=normalized,
                from_lang=from_lang,
                to=to,
                source=TranslationSource.UNRESOLVED,
                words=[
                    h if h is not None else WordTranslation(original=t, source=TranslationSource.UNRESOLVED.value)
                    for t, h in zip(tokens, hints)
                ],
            )

        segments = tokenize(completion.text)
        words = []
        for i, token in enumerate(tokens):
            entry = self.lexicon.lookup(token)
            words.append(
                WordTranslation(
                    original=token,
                    translated=segments[i] if i < len(segments) else None,
                    source=(hints[i].source if hints[i] is not None else TranslationSource.API.value),
                    has_etymology=bool(hints[i] and hints[i].has_etymology) or bool(entry and entry.etymology),
                )
            )

        await self._report_unknown_tokens(normalized, tokens, hints, segments, from_lang, to)

        return TranslationResult(
            original=normalized,
            translated=completion.text,
            from_lang=from_lang,
            to=to,
            source=TranslationSource.API,
            words=words,
        )

    # --- Ledger reporting ---

    async def _report_unknown_tokens(
        self,
        original: str,
        tokens: List[str],
        hints: List[Optional[WordTranslation]],
        segments: List[str],
        from_lang: str,
        to: str,
    ) -> None:
        if self.ledger is None:
            return

        source_language = detect_language(original)["code"] if from_lang == AUTO else from_lang
        learned: Dict[str, str] = {}
        for i, token in enumerate(tokens):
            key = normalize_word(token)
            if hints[i] is not None or key in learned or token.isdigit():
                continue
            if i >= len(segments):
                continue
            learned[key] = segments[i]

        if not learned:
            return

        outcomes = await asyncio.gather(
            *(
                self.ledger.store_learned_word(
                    word,
                    {to: segment},
                    confidence=LEARNED_AI_CONFIDENCE,
                    context=original,
                    source_language=source_language,
                )
                for word, segment in learned.items()
            ),
            return_exceptions=True,
        )

        trigger = False
        for word, outcome in zip(learned, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("ledger_report_failed", word=word, error=str(outcome))
            elif outcome.should_trigger_pr:
                trigger = True

        if trigger and self.trigger is not None:
            self.trigger.schedule()

    # --- Helpers ---

    def _dictionary_result(self, normalized: str, entry: DictionaryEntry, from_lang: str, to: str) -> TranslationResult:
        return TranslationResult(
            original=normalized,
            translated=entry.translate(to),
            from_lang=from_lang,
            to=to,
            source=TranslationSource.DICTIONARY,
            words=[
                WordTranslation(
                    original=normalized,
                    translated=entry.translate(to),
                    source=TranslationSource.DICTIONARY.value,
                    has_etymology=entry.etymology is not None,
                )
            ],
        )

    async def _relational_lookup(self, words: List[str]) -> Dict[str, DictionaryEntry]:
        try:
            return await self.dictionary.lookup_words(words)
        except Exception as e:
            logger.warning("tier_miss", tier="relational", error=str(e))
            return {}

    async def _cache_get(self, key: str) -> Optional[TranslationResult]:
        try:
            raw = await self.cache.get(key)
        except Exception as e:
            logger.warning("cache_read_failed", error=str(e))
            return None
        if not raw:
            return None
        try:
            return TranslationResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    async def _cache_put(self, key: str, result: TranslationResult, ttl: int) -> None:
        try:
            await self.cache.put(key, result.model_dump_json(by_alias=True, exclude_none=True), ttl=ttl)
        except Exception as e:
            logger.warning("cache_write_failed", error=str(e))
