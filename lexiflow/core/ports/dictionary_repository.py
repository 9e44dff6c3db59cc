# lexiflow/core/ports/dictionary_repository.py
from typing import Protocol, Optional, Dict, List, Sequence

from lexiflow.core.domain.models import (
    DictionaryEntry,
    DictionaryExport,
    DictionaryStats,
    EtymologyData,
    LearnedTranslationStats,
    LexiconMatch,
)


class IDictionaryRepository(Protocol):
    """
    Port for the relational dictionary (larger word set than the embedded table).
    Implementations: SqlDictionaryRepository (SQLAlchemy).
    """

    async def lookup_word(self, word: str) -> Optional[DictionaryEntry]:
        ...

    async def lookup_words(self, words: Sequence[str]) -> Dict[str, DictionaryEntry]:
        """
        Batch lookup in a single query.

        Returns:
            Mapping of normalized word -> entry for the words that exist.
        """
        ...

    async def search(self, pattern: str, limit: int = 20, pos: Optional[str] = None) -> List[LexiconMatch]:
        ...

    async def stats(self) -> DictionaryStats:
        ...

    async def get_etymology(self, word: str) -> Optional[EtymologyData]:
        ...

    async def add_entry(self, word: str, entry: DictionaryEntry, is_core: bool = True) -> None:
        """Inserts or replaces the entry for `word`."""
        ...

    async def store_learned_translation(
        self, word: str, language: str, translation: str, confidence: float = 0.9, source: str = "ai"
    ) -> None:
        ...

    async def get_learned_translation(self, word: str, language: str) -> Optional[str]:
        ...

    async def learned_stats(self) -> LearnedTranslationStats:
        ...

    async def export_entries(self, core_only: bool = False) -> DictionaryExport:
        ...
