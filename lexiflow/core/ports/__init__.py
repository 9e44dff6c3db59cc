# lexiflow/core/ports/__init__.py
"""
Core Ports (Interfaces).

Protocols every infrastructure adapter implements, so the resolution
pipeline never imports Redis, SQLAlchemy, httpx or the inference SDK.
"""

from .cache_port import ICache
from .dictionary_repository import IDictionaryRepository
from .ledger_store import ILedgerStore
from .llm_port import ILanguageModel
from .reference_lexicon import IReferenceLexicon
from .source_host import ISourceHost

__all__ = [
    "ICache",
    "IDictionaryRepository",
    "ILedgerStore",
    "ILanguageModel",
    "IReferenceLexicon",
    "ISourceHost",
]
