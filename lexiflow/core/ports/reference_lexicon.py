# lexiflow/core/ports/reference_lexicon.py
from typing import Protocol, Optional

from lexiflow.core.domain.models import ReferenceEntry


class IReferenceLexicon(Protocol):
    """Port for the external reference lexicon (e.g. Wiktionary)."""

    async def fetch_entry(self, word: str, language: str = "en") -> Optional[ReferenceEntry]:
        """
        Returns the parsed entry with markup already cleaned,
        or None if the word does not exist upstream.
        """
        ...
