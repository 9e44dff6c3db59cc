# tests/core/test_etymology.py
import json

import pytest

from lexiflow.core.domain.exceptions import InvalidRequestError
from lexiflow.core.domain.models import Definition, EtymologySource, ReferenceEntry
from lexiflow.core.use_cases.etymology import coerce_etymology

AQUA_ENTRY = ReferenceEntry(
    word="aquarium",
    language="en",
    definitions=[Definition(part_of_speech="Noun", meaning="A tank for fish.")],
    etymology_text='From Latin, meaning "watering place for cattle". Cognate with Spanish acuario.',
    pronunciations=["/əˈkwɛəɹ.i.əm/"],
)


@pytest.mark.asyncio
class TestResolveEtymology:

    async def test_embedded_lexicon_answers_first(self, container, mock_reference, mock_llm, memory_cache):
        """
        Scenario: "hello" has an etymology in the embedded lexicon.
        Expected: source=dictionary, cached=false, no external calls, nothing cached.
        """
        # Arrange
        use_case = container.etymology_use_case()

        # Act
        result = await use_case.get_full_etymology("hello", "en")

        # Assert
        assert result.source == EtymologySource.DICTIONARY
        assert result.cached is False
        assert result.etymology.origin != "Unknown"
        mock_reference.fetch_entry.assert_not_called()
        mock_llm.run.assert_not_called()
        assert len(memory_cache) == 0

    async def test_reference_lexicon_is_parsed_and_cached(self, container, mock_reference):
        mock_reference.fetch_entry.return_value = AQUA_ENTRY
        use_case = container.etymology_use_case()

        first = await use_case.get_full_etymology("Aquarium")
        second = await use_case.get_full_etymology("aquarium")

        assert first.source == EtymologySource.WIKTIONARY
        assert first.etymology.origin == "Latin"
        assert first.etymology.meaning == "watering place for cattle"
        assert first.etymology.cognates[0].language == "Spanish"
        assert first.definitions[0].meaning == "A tank for fish."
        assert first.pronunciations == ["/əˈkwɛəɹ.i.əm/"]
        assert second.cached is True
        assert second.source == EtymologySource.WIKTIONARY
        mock_reference.fetch_entry.assert_awaited_once_with("aquarium", "en")

    async def test_unmatched_prose_is_kept(self, container, mock_reference):
        mock_reference.fetch_entry.return_value = ReferenceEntry(
            word="zorp", language="en", etymology_text="uncertain; possibly imitative"
        )
        use_case = container.etymology_use_case()

        result = await use_case.get_full_etymology("zorp")

        assert result.etymology.description == "uncertain; possibly imitative"

    async def test_model_answers_when_reference_has_nothing(self, container, mock_reference, mock_llm):
        # Arrange
        mock_reference.fetch_entry.return_value = ReferenceEntry(
            word="zorp",
            language="en",
            definitions=[Definition(part_of_speech="Verb", meaning="To zorp.")],
        )
        mock_llm.run.return_value = json.dumps(
            {"origin": "Old Norse", "originalForm": "zorpa", "cognates": [{"word": "zurp", "language": "Icelandic"}]}
        )
        use_case = container.etymology_use_case()

        # Act
        result = await use_case.get_full_etymology("zorp")

        # Assert
        assert result.source == EtymologySource.API
        assert result.etymology.origin == "Old Norse"
        assert result.etymology.original_form == "zorpa"
        assert result.definitions[0].meaning == "To zorp."
        assert mock_llm.run.await_args.args[1] == 'Etymology for the en word: "zorp"'
        assert mock_llm.run.await_args.kwargs["json_mode"] is True

    async def test_reference_failure_is_a_miss(self, container, mock_reference, mock_llm):
        mock_reference.fetch_entry.side_effect = ConnectionError("wiktionary down")
        mock_llm.run.return_value = "It probably comes from Old Norse."
        use_case = container.etymology_use_case()

        result = await use_case.get_full_etymology("zorp")

        assert result.source == EtymologySource.API
        assert result.etymology.description == "It probably comes from Old Norse."

    async def test_terminal_unknown(self, container, mock_llm, memory_cache):
        """
        Scenario: Every tier misses or fails.
        Expected: A minimal unknown result, never an exception, not cached.
        """
        mock_llm.run.side_effect = RuntimeError("model down")
        use_case = container.etymology_use_case()

        result = await use_case.get_full_etymology("zorp")

        assert result.etymology.origin == "Unknown"
        assert result.etymology.is_unknown
        assert result.source == EtymologySource.DICTIONARY
        assert len(memory_cache) == 0

    async def test_definitions_and_related_words(self, container, mock_reference):
        mock_reference.fetch_entry.return_value = AQUA_ENTRY
        use_case = container.etymology_use_case()

        definitions = await use_case.get_definitions("aquarium")
        related = await use_case.get_related_words("aquarium")

        assert [d.part_of_speech for d in definitions] == ["Noun"]
        assert [(c.language, c.word) for c in related.cognates] == [("Spanish", "acuario")]
        assert related.synonyms == []

    async def test_empty_word(self, container):
        with pytest.raises(InvalidRequestError):
            await container.etymology_use_case().get_full_etymology("   ")


class TestCoerceEtymology:

    def test_nested_shape_is_flattened(self):
        data = coerce_etymology({"etymology": {"origin": "Latin", "root": "aqua"}})
        assert (data.origin, data.root) == ("Latin", "aqua")

    def test_schema_mismatch(self):
        assert coerce_etymology({"cognates": "not a list"}) is None
