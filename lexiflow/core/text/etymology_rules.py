# lexiflow/core/text/etymology_rules.py
"""
Heuristic extraction of structured etymology fields from cleaned prose.

Each field owns an ORDERED list of rules. Rules are tried top to bottom and
the first one that matches wins; later rules are never consulted and no
attempt is made to reconcile competing matches. Two rules can match
different substrings of the same text and only the earlier rule's capture
is kept. This is a known precision limit and is preserved as-is.

Callers may supply their own rule table to `EtymologyTextParser`.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from lexiflow.core.domain.models import Cognate, EtymologyData


@dataclass(frozen=True)
class FieldRule:
    """A regex plus the capture groups to read, first non-empty group wins."""
    name: str
    pattern: re.Pattern
    groups: Tuple[int, ...] = (1,)

    def extract(self, text: str) -> Optional[str]:
        match = self.pattern.search(text)
        if not match:
            return None
        for group in self.groups:
            value = match.group(group)
            if value:
                return value
        return match.group(0)


ORIGIN_RULES: List[FieldRule] = [
    FieldRule(
        "from_language",
        re.compile(
            r"(?:from|derived from|borrowed from|via)\s+(?:the\s+)?([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)",
            re.IGNORECASE,
        ),
    ),
    FieldRule(
        "language_origin",
        re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\s+(?:origin|root|word)", re.IGNORECASE),
    ),
    FieldRule(
        "historic_stage",
        re.compile(r"(?:Old|Middle|Proto-|Ancient)\s*([A-Z][a-z]+)", re.IGNORECASE),
    ),
]

ORIGINAL_FORM_RULES: List[FieldRule] = [
    FieldRule("quoted", re.compile(r"[\"']([^\"']+)[\"']")),
    FieldRule("reconstructed", re.compile(r"\*([a-zA-Z]+)")),
]

MEANING_RULES: List[FieldRule] = [
    FieldRule("meaning_keyword", re.compile(r"meaning\s+[\"']?([^\"'.]+)[\"']?", re.IGNORECASE)),
    FieldRule("quoted_gloss", re.compile(r"[\"']([^\"']+)[\"']\s*\(([^)]+)\)"), groups=(1, 2)),
]

ROOT_RULES: List[FieldRule] = [
    FieldRule("root_keyword", re.compile(r"root\s+\*?([a-zA-Z]+)", re.IGNORECASE)),
    FieldRule("proto_reconstruction", re.compile(r"Proto-[A-Z][a-z]+\s+\*([a-zA-Z]+)", re.IGNORECASE)),
]

FIRST_USE_RULES: List[FieldRule] = [
    FieldRule("year", re.compile(r"(?:first\s+(?:recorded|attested|used)\s+(?:in\s+)?)?(\d{4})")),
    FieldRule("circa_year", re.compile(r"(?:c\.|circa|about)\s*(\d{4})")),
    FieldRule("century", re.compile(r"(\d{1,2}(?:th|st|nd|rd)\s+century)", re.IGNORECASE)),
]

DEFAULT_RULES: Dict[str, List[FieldRule]] = {
    "origin": ORIGIN_RULES,
    "original_form": ORIGINAL_FORM_RULES,
    "meaning": MEANING_RULES,
    "root": ROOT_RULES,
    "first_use": FIRST_USE_RULES,
}

# Cognate clauses are collected globally; every clause is split into parts
# and each part is read as "<Language> <word>".
_COGNATE_CLAUSE_RE = re.compile(r"(?:cognate|related|cf\.?)\s+(?:with\s+)?([^.;]+)", re.IGNORECASE)
_COGNATE_SPLIT_RE = re.compile(r",|and")
_COGNATE_PART_RE = re.compile(r"([A-Z][a-z]+)\s+[\"']?([^\"',]+)[\"']?")


def first_match(rules: Sequence[FieldRule], text: str) -> Optional[str]:
    for rule in rules:
        value = rule.extract(text)
        if value is not None:
            return value
    return None


def extract_cognates(text: str) -> List[Cognate]:
    cognates: List[Cognate] = []
    for clause in _COGNATE_CLAUSE_RE.finditer(text):
        for part in _COGNATE_SPLIT_RE.split(clause.group(1)):
            match = _COGNATE_PART_RE.search(part.strip())
            if match:
                cognates.append(Cognate(language=match.group(1), word=match.group(2)))
    return cognates


class EtymologyTextParser:
    """Turns cleaned etymology prose into an `EtymologyData` record."""

    def __init__(self, rules: Optional[Dict[str, List[FieldRule]]] = None):
        self.rules = rules if rules is not None else DEFAULT_RULES

    def parse(self, etymology_text: str) -> EtymologyData:
        if not etymology_text:
            return EtymologyData()

        fields = {}
        for field_name, rules in self.rules.items():
            value = first_match(rules, etymology_text)
            if value is not None:
                fields[field_name] = value

        cognates = extract_cognates(etymology_text)
        if cognates:
            fields["cognates"] = cognates

        return EtymologyData(**fields)


def parse_etymology_text(etymology_text: str) -> EtymologyData:
    return EtymologyTextParser().parse(etymology_text)
