# lexiflow/core/text/markup.py
"""
Cleaning of MediaWiki-style markup returned by the external lexicon.

Order matters:
  1. Links are resolved: [[target|display]] -> display, [[target]] -> target.
  2. Templates {{...}} are dropped.
  3. Tag-like spans <...> are removed repeatedly until nothing changes,
     since stripping one tag can expose another.
  4. Any angle bracket still present is removed.
  5. Whitespace is collapsed.
"""

import re

_PIPED_LINK_RE = re.compile(r"\[\[([^\]|]+)\|([^\]]+)\]\]")
_LINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
_TEMPLATE_RE = re.compile(r"\{\{[^}]+\}\}")
_TAG_RE = re.compile(r"<[^>]+>")
_ANGLE_RE = re.compile(r"[<>]")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_tags(text: str) -> str:
    """Removes <...> spans until a fixed point is reached."""
    if not text:
        return ""
    previous = None
    current = text
    while current != previous:
        previous = current
        current = _TAG_RE.sub("", current)
    return current


def clean_wiki_markup(text: str) -> str:
    if not text:
        return ""

    cleaned = _PIPED_LINK_RE.sub(r"\2", text)
    cleaned = _LINK_RE.sub(r"\1", cleaned)
    cleaned = _TEMPLATE_RE.sub("", cleaned)
    cleaned = strip_tags(cleaned)
    cleaned = _ANGLE_RE.sub("", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()
