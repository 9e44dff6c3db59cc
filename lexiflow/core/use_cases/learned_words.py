# lexiflow/core/use_cases/learned_words.py
import asyncio
import json
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import structlog
from pydantic import ValidationError

from lexiflow.core.domain.exceptions import BatchTooLargeError, InvalidRequestError
from lexiflow.core.domain.models import (
    BULK_TIER_LIMITS,
    BulkError,
    BulkTier,
    BulkUploadResult,
    BulkWordItem,
    LearnedSource,
    LearnedWord,
    LearningConfig,
    LearningStats,
    StoreResult,
    utcnow,
)
from lexiflow.core.ports.ledger_store import ILedgerStore
from lexiflow.core.text.normalization import normalize_word
from lexiflow.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

DEFAULT_AI_CONFIDENCE = 0.7
DEFAULT_BULK_CONFIDENCE = 0.9
BULK_SUB_BATCH_SIZE = 50
MIN_WORD_LENGTH = 2
MAX_WORD_LENGTH = 50
CONTEXT_WINDOW = 5
# Observation count that qualifies a word regardless of its confidence.
TRUSTED_SEEN_COUNT = 3


def merge_confidence(existing: float, incoming: float) -> float:
    """Pairwise average, capped at 1."""
    return min((existing + incoming) / 2, 1.0)


def should_trigger_pr(config: LearningConfig, pending_count: int, is_processing: bool,
                      threshold: Optional[int] = None) -> bool:
    limit = threshold if threshold is not None else config.pr_threshold
    return config.auto_trigger and pending_count >= limit and not is_processing


def is_contribution_ready(record: LearnedWord, min_confidence: float) -> bool:
    return record.confidence >= min_confidence or record.seen_count >= TRUSTED_SEEN_COUNT


def merge_observation(
    existing: LearnedWord,
    translations: Mapping[str, str],
    confidence: float,
    context: Optional[str] = None,
    detected_pos: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LearnedWord:
    """
    Folds a repeat sighting into an existing record. Later translations
    overwrite same-language keys; the context window keeps the newest five.
    """
    contexts = existing.contexts
    if context:
        contexts = list(existing.contexts or [])[-(CONTEXT_WINDOW - 1):] + [context]

    return existing.model_copy(update={
        "translations": {**existing.translations, **translations},
        "seen_count": existing.seen_count + 1,
        "last_seen": now or utcnow(),
        "confidence": merge_confidence(existing.confidence, confidence),
        "contexts": contexts,
        "detected_pos": existing.detected_pos or detected_pos,
    })


def _validate_confidence(value: Optional[float], default: float) -> float:
    if value is None:
        return default
    if not 0.0 <= value <= 1.0:
        raise InvalidRequestError(f"confidence must be within [0, 1], got {value}")
    return float(value)


class LearnedWordLedger:
    """
    Use Case: durable memory of words only the AI cascade could resolve.

    Responsibilities:
    1. Create or merge LearnedWord records (confidence averaging, seen counts).
    2. Maintain the deduplicated Pending Queue.
    3. Answer whether a contribution should be triggered.
    4. Bulk ingestion with size tiers and per-item error isolation.
    """

    def __init__(self, store: ILedgerStore, defaults: Optional[LearningConfig] = None):
        self.store = store
        self.defaults = defaults or LearningConfig()

    # --- Configuration ---

    async def get_config(self) -> LearningConfig:
        overrides = await self.store.get_config_overrides()
        try:
            return LearningConfig.model_validate({**self.defaults.model_dump(), **overrides})
        except ValidationError as e:
            logger.warning("learning_config_override_invalid", error=str(e))
            return self.defaults

    async def set_config(self, updates: Mapping[str, Any]) -> LearningConfig:
        """Partial update. Keys may be snake_case or camelCase."""
        fields = {}
        for key, value in updates.items():
            name = _config_field_name(key)
            if name is None:
                raise InvalidRequestError(f"unknown learning config key '{key}'")
            fields[name] = value

        current = await self.get_config()
        try:
            updated = LearningConfig.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            raise InvalidRequestError(f"invalid learning config: {e.errors()[0]['msg']}") from e

        overrides = await self.store.get_config_overrides()
        overrides.update({k: getattr(updated, k) for k in fields})
        await self.store.set_config_overrides(overrides)
        logger.info("learning_config_updated", fields=sorted(fields))
        return updated

    # --- Reads ---

    async def get_learned_word(self, word: str) -> Optional[LearnedWord]:
        return await self.store.get_word(normalize_word(word))

    async def get_pending_words(self) -> List[LearnedWord]:
        return await self.store.get_words(await self.store.pending_keys())

    async def get_stats(self) -> LearningStats:
        return await self.store.get_stats()

    async def get_learned_translation(self, word: str, lang: str) -> Optional[str]:
        """
        Returns a learned value only when the record is trusted: confidence
        at or above `min_confidence`, OR seen at least three times.
        """
        record = await self.get_learned_word(word)
        if record is None or lang not in record.translations:
            return None
        config = await self.get_config()
        if not is_contribution_ready(record, config.min_confidence):
            return None
        return record.translations[lang]

    # --- Writes ---

    async def _create_or_merge(
        self,
        key: str,
        translations: Mapping[str, str],
        confidence: float,
        *,
        context: Optional[str],
        source_language: str,
        detected_pos: Optional[str],
        source: LearnedSource,
        skip_existing: bool = False,
    ) -> Optional[bool]:
        """Returns True when created, False when merged, None when skipped."""
        existing = await self.store.get_word(key)

        if existing is not None:
            if skip_existing:
                return None
            await self.store.put_word(
                merge_observation(existing, translations, confidence, context=context, detected_pos=detected_pos)
            )
            return False

        now = utcnow()
        record = LearnedWord(
            word=key,
            source_language=source_language,
            translations=dict(translations),
            detected_pos=detected_pos,
            first_seen=now,
            seen_count=1,
            last_seen=now,
            confidence=confidence,
            contexts=[context] if context else None,
            source=source,
        )
        await self.store.put_word(record)
        if await self.store.add_pending(key):
            await self.store.increment_total_learned()
        return True

    async def store_learned_word(
        self,
        word: str,
        translations: Mapping[str, str],
        *,
        confidence: Optional[float] = None,
        context: Optional[str] = None,
        source_language: str = "en",
        detected_pos: Optional[str] = None,
        source: LearnedSource = LearnedSource.AI,
    ) -> StoreResult:
        key = normalize_word(word)
        if not key:
            raise InvalidRequestError("word is required")
        incoming = _validate_confidence(confidence, DEFAULT_AI_CONFIDENCE)

        with tracer.start_as_current_span("use_case.store_learned_word") as span:
            span.set_attribute("app.word", key)

            created = await self._create_or_merge(
                key,
                translations,
                incoming,
                context=context,
                source_language=source_language,
                detected_pos=detected_pos,
                source=source,
            )

            config, pending, processing = await asyncio.gather(
                self.get_config(), self.store.pending_count(), self.store.is_processing()
            )
            trigger = should_trigger_pr(config, pending, processing)

            logger.info("learned_word_stored", word=key, created=created, pending=pending, trigger=trigger)
            return StoreResult(stored=True, should_trigger_pr=trigger, pending_count=pending)

    async def bulk_upload_words(
        self,
        words: Sequence[Union[BulkWordItem, Mapping[str, Any]]],
        *,
        tier: Optional[Union[BulkTier, str]] = None,
        source: LearnedSource = LearnedSource.BULK,
        source_language: str = "en",
        skip_duplicates: bool = False,
        trigger_pr_threshold: Optional[int] = None,
    ) -> BulkUploadResult:
        config = await self.get_config()
        threshold = trigger_pr_threshold or config.pr_threshold

        try:
            check_batch_size(len(words), tier, config)
        except BatchTooLargeError as e:
            logger.warning("bulk_upload_rejected", size=len(words), limit=e.limit, tier=e.tier)
            return BulkUploadResult(
                success=False,
                errors=[BulkError(word="", error=e.message)],
                pending_count=await self.store.pending_count(),
                pr_threshold=threshold,
            )

        counts = {"added": 0, "updated": 0, "skipped": 0}
        errors: List[BulkError] = []

        async def process(raw: Union[BulkWordItem, Mapping[str, Any]]) -> None:
            label = raw.word if isinstance(raw, BulkWordItem) else str(raw.get("word", ""))
            try:
                item = raw if isinstance(raw, BulkWordItem) else BulkWordItem.model_validate(raw)
                key = normalize_word(item.word)
                if not MIN_WORD_LENGTH <= len(key) <= MAX_WORD_LENGTH:
                    counts["skipped"] += 1
                    return

                outcome = await self._create_or_merge(
                    key,
                    item.translations,
                    item.confidence if item.confidence is not None else DEFAULT_BULK_CONFIDENCE,
                    context=None,
                    source_language=source_language,
                    detected_pos=item.pos,
                    source=source,
                    skip_existing=skip_duplicates,
                )
                counts[{True: "added", False: "updated", None: "skipped"}[outcome]] += 1
            except Exception as e:
                logger.warning("bulk_item_failed", word=label, error=str(e))
                errors.append(BulkError(word=label, error=_item_error(e)))

        with tracer.start_as_current_span("use_case.bulk_upload_words") as span:
            span.set_attribute("app.bulk_size", len(words))

            for start in range(0, len(words), BULK_SUB_BATCH_SIZE):
                batch = words[start:start + BULK_SUB_BATCH_SIZE]
                await asyncio.gather(*(process(item) for item in batch))

            pending, processing = await asyncio.gather(self.store.pending_count(), self.store.is_processing())
            result = BulkUploadResult(
                success=not errors,
                added=counts["added"],
                updated=counts["updated"],
                skipped=counts["skipped"],
                errors=errors,
                pending_count=pending,
                should_trigger_pr=should_trigger_pr(config, pending, processing, threshold),
                pr_threshold=threshold,
            )
            logger.info("bulk_upload_finished", **counts, errors=len(errors), pending=pending)
            return result

    # --- Export ---

    async def export_as_dict(self) -> Dict[str, Dict[str, Any]]:
        exported: Dict[str, Dict[str, Any]] = {}
        for record in await self.get_pending_words():
            exported[record.word] = {
                "translations": record.translations,
                "pos": record.detected_pos,
                "frequency": 999,
                "learned": True,
                "firstSeen": record.first_seen.isoformat(),
                "confidence": record.confidence,
            }
        return exported


def check_batch_size(size: int, tier: Optional[Union[BulkTier, str]], config: LearningConfig) -> None:
    """
    Raises BatchTooLargeError when `size` exceeds the tier cap. Without a
    tier the configured `max_bulk_size` applies.
    """
    if tier is None:
        limit, tier_name = config.max_bulk_size, "config"
    else:
        try:
            tier = BulkTier(tier)
        except ValueError:
            raise InvalidRequestError(f"unknown bulk tier '{tier}'")
        limit, tier_name = BULK_TIER_LIMITS[tier], tier.value

    if limit is not None and size > limit:
        raise BatchTooLargeError(size=size, limit=limit, tier=tier_name)


def generate_dict_entries(words: Sequence[LearnedWord], indent: str = "    ") -> str:
    """
    Renders records as JSON object members, one per line, ready to be
    spliced into the canonical lexicon's "words" object.
    """
    lines = []
    for record in words:
        entry = {
            "translations": record.translations,
            "pos": record.detected_pos or "unknown",
            "frequency": 999,
        }
        lines.append(f"{indent}{json.dumps(record.word, ensure_ascii=False)}: {json.dumps(entry, ensure_ascii=False)}")
    return ",\n".join(lines)


def _config_field_name(key: str) -> Optional[str]:
    for name, field in LearningConfig.model_fields.items():
        if key in (name, field.alias):
            return name
    return None


def _item_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return exc.errors()[0].get("msg", "invalid item")
    return str(exc) or exc.__class__.__name__
