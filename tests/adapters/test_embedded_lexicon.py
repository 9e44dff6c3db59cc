# tests/adapters/test_embedded_lexicon.py
import json

import pytest

from lexiflow.adapters.persistence.embedded_lexicon import EmbeddedLexicon
from lexiflow.shared.config import settings

DOCUMENT = {
    "meta": {"version": "test"},
    "words": {
        "Hello": {"translations": {"es": "hola", "fr": "bonjour"}, "pos": "interjection", "frequency": 1},
        "thank you": {"translations": {"es": "gracias"}, "pos": "phrase"},
        "broken": {"translations": "not a mapping"},
    },
}


class TestEmbeddedLexicon:

    def test_malformed_entries_are_skipped(self):
        lexicon = EmbeddedLexicon.from_document(DOCUMENT)

        assert len(lexicon) == 2
        assert "broken" not in lexicon
        assert "HELLO" in lexicon

    def test_translate_words_splits_hits_and_misses(self):
        lexicon = EmbeddedLexicon.from_document(DOCUMENT)

        split = lexicon.translate_words(["hello", "zorp"], "es")

        assert [w.translated for w in split.translated] == ["hola"]
        assert split.not_found == ["zorp"]

    def test_language_pairs(self):
        lexicon = EmbeddedLexicon.from_document(DOCUMENT)

        assert lexicon.supported_target_languages() == ["es", "fr"]
        assert lexicon.is_language_pair_supported("auto", "fr")
        assert not lexicon.is_language_pair_supported("de", "fr")

    def test_search(self):
        lexicon = EmbeddedLexicon.from_document(DOCUMENT)

        assert [m.word for m in lexicon.search("thank")] == ["thank you"]
        assert [m.word for m in lexicon.search("gracias", include_translations=True)] == ["thank you"]

    def test_stats(self):
        stats = EmbeddedLexicon.from_document(DOCUMENT).stats()
        assert stats.category_counts == {"interjection": 1, "phrase": 1}

    def test_missing_words_object(self):
        with pytest.raises(ValueError):
            EmbeddedLexicon.from_document({"meta": {}})

    def test_from_path(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")

        assert EmbeddedLexicon.from_path(path).meta == {"version": "test"}

    def test_bundled_lexicon_loads(self):
        lexicon = EmbeddedLexicon.from_path(settings.LEXICON_PATH)

        assert lexicon.translate_word("hello", "es").translated == "hola"
        assert lexicon.get_etymology("hello") is not None
