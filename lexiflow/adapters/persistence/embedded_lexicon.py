# lexiflow/adapters/persistence/embedded_lexicon.py
"""
Embedded Lexicon Store
======================

Immutable in-process table of `word -> DictionaryEntry`, loaded once at
startup from the canonical lexicon document:

    {
      "meta":  {...},
      "words": {
        "hello": {"translations": {...}, "etymology": {...}, "pos": "...", "frequency": 1},
        ...
      }
    }

Keys are canonicalized with `normalize_word`, so lookups are
case-insensitive and whitespace-normalized.

Error behaviour
---------------
- A missing or unreadable file raises at load time; the store never
  starts half-initialized.
- An individual malformed entry is skipped with a warning.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog
from pydantic import ValidationError

from lexiflow.core.domain.models import (
    DictionaryEntry,
    DictionaryStats,
    EtymologyData,
    LexiconMatch,
    WordLookupSplit,
    WordTranslation,
)
from lexiflow.core.text.normalization import normalize_word

logger = structlog.get_logger()

# Reference entry whose translation keys define the supported target languages.
_SAMPLE_WORD = "hello"


class EmbeddedLexicon:
    """Read-only O(1) lexicon table."""

    def __init__(self, entries: Mapping[str, DictionaryEntry], meta: Optional[Dict[str, Any]] = None):
        self._entries: Mapping[str, DictionaryEntry] = MappingProxyType(
            {normalize_word(word): entry for word, entry in entries.items()}
        )
        self.meta = dict(meta or {})

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "EmbeddedLexicon":
        raw_words = document.get("words")
        if not isinstance(raw_words, dict):
            raise ValueError("Lexicon document has no 'words' object.")

        entries: Dict[str, DictionaryEntry] = {}
        for word, payload in raw_words.items():
            try:
                entries[word] = DictionaryEntry.model_validate(payload)
            except ValidationError as e:
                logger.warning("lexicon_entry_skipped", word=word, error=str(e))

        return cls(entries, meta=document.get("meta"))

    @classmethod
    def from_path(cls, path: str | Path) -> "EmbeddedLexicon":
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        lexicon = cls.from_document(document)
        logger.info("lexicon_loaded", path=str(path), words=len(lexicon))
        return lexicon

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and normalize_word(word) in self._entries

    def words(self) -> Iterable[str]:
        return self._entries.keys()

    # --- Lookup ---

    def lookup(self, word: str) -> Optional[DictionaryEntry]:
        return self._entries.get(normalize_word(word))

    def translate_word(self, word: str, target_lang: str) -> Optional[WordTranslation]:
        entry = self.lookup(word)
        if entry is None:
            return None
        translated = entry.translate(target_lang)
        if translated is None:
            return None
        return WordTranslation(
            original=word,
            translated=translated,
            source="dictionary",
            has_etymology=entry.etymology is not None,
        )

    def translate_words(self, words: List[str], target_lang: str) -> WordLookupSplit:
        split = WordLookupSplit()
        for word in words:
            result = self.translate_word(word, target_lang)
            if result:
                split.translated.append(result)
            else:
                split.not_found.append(word)
        return split

    def get_etymology(self, word: str) -> Optional[EtymologyData]:
        entry = self.lookup(word)
        return entry.etymology if entry else None

    # --- Discovery ---

    def supported_target_languages(self) -> List[str]:
        sample = self._entries.get(_SAMPLE_WORD)
        return list(sample.translations.keys()) if sample else []

    def is_language_pair_supported(self, source_lang: str, target_lang: str) -> bool:
        # Every embedded entry translates from English.
        if source_lang not in ("en", "auto"):
            return False
        return target_lang in self.supported_target_languages()

    def search(self, query: str, limit: int = 10, include_translations: bool = False) -> List[LexiconMatch]:
        needle = normalize_word(query)
        results: List[LexiconMatch] = []

        for word, entry in self._entries.items():
            if len(results) >= limit:
                break
            if needle in word:
                results.append(LexiconMatch(word=word, entry=entry))
                continue
            if include_translations and any(needle in t.lower() for t in entry.translations.values()):
                results.append(LexiconMatch(word=word, entry=entry))

        return results

    def stats(self) -> DictionaryStats:
        category_counts: Dict[str, int] = {}
        for entry in self._entries.values():
            pos = entry.pos or "unknown"
            category_counts[pos] = category_counts.get(pos, 0) + 1

        return DictionaryStats(
            word_count=len(self._entries),
            languages_supported=self.supported_target_languages(),
            category_counts=category_counts,
        )
