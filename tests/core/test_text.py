# tests/core/test_text.py
import re

from lexiflow.core.text.etymology_rules import (
    EtymologyTextParser,
    FieldRule,
    extract_cognates,
    first_match,
    parse_etymology_text,
    ORIGIN_RULES,
)
from lexiflow.core.text.languages import language_name
from lexiflow.core.text.markup import clean_wiki_markup, strip_tags
from lexiflow.core.text.normalization import (
    detect_language,
    fingerprint,
    normalize_text,
    normalize_word,
    tokenize,
)


class TestNormalization:

    def test_normalize_word_is_case_and_whitespace_insensitive(self):
        assert normalize_word("  Thank\t YOU ") == "thank you"

    def test_normalize_text_truncates(self):
        text = "word " * 2000
        assert len(normalize_text(text, 5000)) <= 5000

    def test_invisible_characters_are_dropped(self):
        assert normalize_text("hel\u200blo") == "hello"

    def test_tokenize_keeps_apostrophes_and_inner_hyphens(self):
        assert tokenize("Don't stop, well-known friend!") == ["Don't", "stop", "well-known", "friend"]

    def test_fingerprint_ignores_whitespace_noise(self):
        assert fingerprint("hello  world") == fingerprint(" hello world ")
        assert fingerprint("hello world") != fingerprint("hello there")
        assert len(fingerprint("x")) == 16

    def test_detect_language_by_script(self):
        assert detect_language("привет") == {"code": "ru", "confidence": 0.8}
        assert detect_language("こんにちは")["code"] == "ja"
        assert detect_language("hello") == {"code": "en", "confidence": 0.5}

    def test_language_name(self):
        assert language_name("es") == "Spanish"
        assert language_name("auto") == "the detected language"


class TestMarkup:

    def test_links_templates_and_tags_are_cleaned(self):
        raw = "From [[Latin]] [[aqua|aqua]] {{m|la|aqua}} <i>water</i>"
        assert clean_wiki_markup(raw) == "From Latin aqua water"

    def test_no_angle_brackets_survive(self):
        """
        Scenario: Tag-like spans nested inside each other.
        Expected: Nothing that looks like markup leaks into the output.
        """
        cleaned = clean_wiki_markup("<scr<b>ipt>alert<</b>/script>")
        assert "<" not in cleaned and ">" not in cleaned

    def test_strip_tags_reaches_fixed_point(self):
        assert strip_tags("<a><b>text</b></a>") == "text"
        assert strip_tags("") == ""


class TestEtymologyRules:

    def test_fields_are_extracted_from_prose(self):
        data = parse_etymology_text('From French, meaning "good day". First recorded in 1827.')

        assert data.origin == "French"
        assert data.meaning == "good day"
        assert data.first_use == "1827"
        assert data.root is None

    def test_first_rule_wins(self):
        """
        Scenario: Two origin rules could match different parts of the text.
        Expected: The earlier rule's capture is kept.
        """
        text = "Latin origin, derived from Greek"
        assert first_match(ORIGIN_RULES, text) == "Greek"

    def test_cognates(self):
        cognates = extract_cognates("Cognate with German Wasser, Dutch water.")
        assert [(c.language, c.word) for c in cognates] == [("German", "Wasser"), ("Dutch", "water")]

    def test_custom_rule_table(self):
        parser = EtymologyTextParser({"origin": [FieldRule("norse", re.compile(r"(Norse)"))]})
        assert parser.parse("Old Norse knifr").origin == "Norse"

    def test_empty_text_is_unknown(self):
        assert parse_etymology_text("").is_unknown
