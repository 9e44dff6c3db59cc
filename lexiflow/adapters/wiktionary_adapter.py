# lexiflow/adapters/wiktionary_adapter.py
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog

from lexiflow.core.domain.models import Definition, ReferenceEntry
from lexiflow.core.text.markup import clean_wiki_markup
from lexiflow.shared.resilience import get_circuit_breaker, retry_external_api

logger = structlog.get_logger()


class WiktionaryAdapter:
    """
    Adapter for the Wiktionary REST definition endpoint.

    Responsibilities:
    1. Fetch the per-language entry list for a word.
    2. Clean MediaWiki markup out of every text field.
    3. Handle network instability via Circuit Breaker and Retries.

    A 404 is an answer (the word does not exist) and returns None. Any other
    failure is raised so the caller can record a tier miss.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, user_agent: str = "lexiflow/1.0"):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.circuit_breaker = get_circuit_breaker("wiktionary")
        self.headers = {
            "Accept": "application/json",
            "User-Agent": user_agent,
        }

    async def fetch_entry(self, word: str, language: str = "en") -> Optional[ReferenceEntry]:
        return await self.circuit_breaker.a_call(self._fetch, word, language)

    @retry_external_api
    async def _fetch(self, word: str, language: str) -> Optional[ReferenceEntry]:
        url = f"{self.base_url}/page/definition/{quote(word, safe='')}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, headers=self.headers)

            if response.status_code == 404:
                logger.info("wiktionary_word_not_found", word=word)
                return None

            response.raise_for_status()
            return self._parse_response(response.json(), word, language)

    def _parse_response(self, data: Dict[str, Any], word: str, language: str) -> Optional[ReferenceEntry]:
        """
        The endpoint keys results by language code. Falls back to the English
        section when the requested language is absent.
        """
        sections = data.get(language) or data.get("en")
        if not isinstance(sections, list):
            return None

        definitions: List[Definition] = []
        etymology: Optional[str] = None
        pronunciations: List[str] = []

        for section in sections:
            if not isinstance(section, dict):
                continue

            part_of_speech = section.get("partOfSpeech")
            for item in section.get("definitions") or []:
                if not part_of_speech:
                    break
                examples = [clean_wiki_markup(ex) for ex in item.get("examples") or [] if isinstance(ex, str)]
                definitions.append(
                    Definition(
                        part_of_speech=part_of_speech,
                        meaning=clean_wiki_markup(item.get("definition") or ""),
                        examples=examples or None,
                    )
                )

            # Later sections overwrite earlier ones.
            if section.get("etymology"):
                etymology = clean_wiki_markup(section["etymology"])

            pronunciation = section.get("pronunciations")
            if isinstance(pronunciation, dict) and pronunciation.get("value"):
                pronunciations.append(pronunciation["value"])

        return ReferenceEntry(
            word=word,
            language=language,
            definitions=definitions,
            etymology_text=etymology,
            pronunciations=pronunciations or None,
        )
