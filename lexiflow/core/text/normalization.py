# lexiflow/core/text/normalization.py
"""
Normalization, tokenization and fingerprinting shared by every tier.

Lookups are case-insensitive and whitespace-normalized: the same helper
builds the keys of the embedded lexicon, the relational store and the
learned word ledger, so a word resolves identically in each of them.

>>> normalize_word("  Hello\tWorld ")
'hello world'
>>> tokenize("Hello, world!")
['Hello', 'world']
"""

from __future__ import annotations

import hashlib
import re
import unicodedata
from typing import List, Tuple

__all__ = [
    "normalize_text",
    "normalize_word",
    "tokenize",
    "fingerprint",
    "detect_language",
]

_WHITESPACE_RE = re.compile(r"\s+")

# Letters, digits, apostrophes and inner hyphens; punctuation is dropped.
_TOKEN_RE = re.compile(r"[\w]+(?:['’\-][\w]+)*", re.UNICODE)

# Zero-width and BOM characters that sneak in from copy/paste.
_INVISIBLES = dict.fromkeys(map(ord, "​‌‍⁠﻿"), None)

# Script ranges checked in order; first hit wins.
_SCRIPT_PATTERNS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("zh", re.compile(r"[一-鿿]")),
    ("ja", re.compile(r"[぀-ゟ゠-ヿ]")),
    ("ko", re.compile(r"[가-힯]")),
    ("ar", re.compile(r"[؀-ۿ]")),
    ("ru", re.compile(r"[Ѐ-ӿ]")),
    ("he", re.compile(r"[֐-׿]")),
    ("th", re.compile(r"[฀-๿]")),
    ("el", re.compile(r"[Ͱ-Ͽ]")),
)


def normalize_text(text: str, max_length: int | None = None) -> str:
    """
    NFC-normalize, drop invisible characters, collapse whitespace runs and
    truncate to `max_length`. Case is preserved.
    """
    if not isinstance(text, str):
        return ""
    text = unicodedata.normalize("NFC", text).translate(_INVISIBLES)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    if max_length is not None and len(text) > max_length:
        text = text[:max_length].rstrip()
    return text


def normalize_word(word: str) -> str:
    """Canonical lookup key: normalized text, lowercased."""
    return normalize_text(word).lower()


def tokenize(text: str) -> List[str]:
    """Split text into word tokens, preserving their original case."""
    if not text:
        return []
    return _TOKEN_RE.findall(text)


def fingerprint(text: str) -> str:
    """Deterministic short hash of normalized text for cache keys."""
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()[:16]


def detect_language(text: str) -> dict:
    """
    Script-range heuristic. Non-Latin scripts map to a language at 0.8
    confidence; anything else is assumed English at 0.5.
    """
    for code, pattern in _SCRIPT_PATTERNS:
        if pattern.search(text or ""):
            return {"code": code, "confidence": 0.8}
    return {"code": "en", "confidence": 0.5}
