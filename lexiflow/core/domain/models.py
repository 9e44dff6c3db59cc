# lexiflow/core/domain/models.py
from enum import Enum
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """
    Base for every model that crosses the core boundary.
    Python code uses snake_case; serialized payloads use camelCase keys.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

# --- Enums ---

class TranslationSource(str, Enum):
    """Which tier produced a translation."""
    DICTIONARY = "dictionary"
    CACHE = "cache"
    API = "api"
    UNRESOLVED = "unresolved"   # every tier missed; original text is echoed back


class EtymologySource(str, Enum):
    DICTIONARY = "dictionary"
    WIKTIONARY = "wiktionary"
    API = "api"


class LearnedSource(str, Enum):
    """How a word entered the ledger."""
    AI = "ai"
    BULK = "bulk"
    USER = "user"


class BulkTier(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"
    UNLIMITED = "unlimited"


BULK_TIER_LIMITS: Dict[BulkTier, Optional[int]] = {
    BulkTier.SMALL: 100,
    BulkTier.MEDIUM: 500,
    BulkTier.LARGE: 1000,
    BulkTier.XLARGE: 5000,
    BulkTier.UNLIMITED: None,
}

# --- Lexicon Entities ---

class Cognate(CamelModel):
    word: str
    language: str


class EtymologyData(CamelModel):
    """
    Canonical etymology record. Every field but `origin` is optional and a
    missing field means "unknown", never an error.
    """
    origin: str = "Unknown"
    original_form: Optional[str] = None
    meaning: Optional[str] = None
    root: Optional[str] = None
    root_language: Optional[str] = None
    cognates: Optional[List[Cognate]] = None
    first_use: Optional[str] = None
    evolution: Optional[List[str]] = None
    # Raw model output kept when it could not be structured
    description: Optional[str] = None

    @property
    def is_unknown(self) -> bool:
        return self.origin == "Unknown" and not any(
            (self.original_form, self.meaning, self.root, self.cognates, self.description)
        )


class DictionaryEntry(CamelModel):
    """Immutable once seeded; additions only arrive through a contribution."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    translations: Dict[str, str] = Field(default_factory=dict)
    etymology: Optional[EtymologyData] = None
    pos: Optional[str] = None
    frequency: Optional[int] = None  # 1 = most common
    variants: Optional[List[str]] = None

    def translate(self, lang: str) -> Optional[str]:
        # Key presence alone decides; an identical value still counts as resolved.
        return self.translations.get(lang)


class WordTranslation(CamelModel):
    """One token of a translated text, aligned by position."""
    original: str
    translated: Optional[str] = None
    source: str = "dictionary"
    has_etymology: bool = False

# --- Ledger Entities ---

class LearnedWord(CamelModel):
    word: str
    source_language: str = "en"
    translations: Dict[str, str] = Field(default_factory=dict)
    detected_pos: Optional[str] = None
    first_seen: datetime = Field(default_factory=utcnow)
    seen_count: int = Field(default=1, ge=1)
    last_seen: datetime = Field(default_factory=utcnow)
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    contexts: Optional[List[str]] = None
    source: LearnedSource = LearnedSource.AI


class LearningStats(CamelModel):
    total_learned: int = 0
    pending_count: int = 0
    last_sync_to_repo: Optional[datetime] = None
    last_pr_number: Optional[int] = Field(default=None, alias="lastPRNumber")
    is_processing: bool = False


class LearningConfig(CamelModel):
    pr_threshold: int = 10
    max_bulk_size: int = 1000
    max_words_per_pr: int = Field(default=500, alias="maxWordsPerPR")
    auto_trigger: bool = True
    min_confidence: float = 0.7


class BulkWordItem(CamelModel):
    word: str
    translations: Dict[str, str] = Field(default_factory=dict)
    pos: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class GitHubConfig(CamelModel):
    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    base_branch: str = "main"
    file_path: str = "lexiflow/data/core_lexicon.json"
    insert_marker: str = '"words": {'

# --- Operation Results ---

class TranslationResult(CamelModel):
    original: str
    translated: str
    from_lang: str = Field(alias="from")
    to: str
    cached: bool = False
    source: TranslationSource
    words: Optional[List[WordTranslation]] = None


class BatchTranslationResult(CamelModel):
    translations: List[TranslationResult]
    count: int


class Definition(CamelModel):
    part_of_speech: str
    meaning: str
    examples: Optional[List[str]] = None


class ReferenceEntry(CamelModel):
    """Parsed external lexicon page for one word."""
    word: str
    language: str
    definitions: List[Definition] = Field(default_factory=list)
    etymology_text: Optional[str] = None
    pronunciations: Optional[List[str]] = None


class EtymologyResult(CamelModel):
    word: str
    language: str
    etymology: EtymologyData
    definitions: Optional[List[Definition]] = None
    pronunciations: Optional[List[str]] = None
    source: EtymologySource
    cached: bool = False


class RelatedWords(CamelModel):
    cognates: List[Cognate] = Field(default_factory=list)
    derivatives: List[str] = Field(default_factory=list)
    synonyms: List[str] = Field(default_factory=list)


class StoreResult(CamelModel):
    stored: bool
    should_trigger_pr: bool = Field(alias="shouldTriggerPR")
    pending_count: int


class BulkError(CamelModel):
    word: str
    error: str


class BulkUploadResult(CamelModel):
    success: bool
    added: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[BulkError] = Field(default_factory=list)
    pending_count: int = 0
    should_trigger_pr: bool = Field(default=False, alias="shouldTriggerPR")
    pr_threshold: int = 10


class ContributionResult(CamelModel):
    success: bool
    pr_number: Optional[int] = Field(default=None, alias="prNumber")
    pr_url: Optional[str] = Field(default=None, alias="prUrl")
    error: Optional[str] = None
    words: Optional[List[str]] = None

# --- Store Views ---

class LexiconMatch(CamelModel):
    word: str
    entry: DictionaryEntry


class DictionaryStats(CamelModel):
    word_count: int
    languages_supported: List[str]
    category_counts: Dict[str, int]


class LearnedTranslationStats(CamelModel):
    total: int
    by_language: Dict[str, int]
    verified: int


class DictionaryExport(CamelModel):
    entries: List[LexiconMatch]
    exported_at: datetime = Field(default_factory=utcnow)
    count: int


class WordLookupSplit(CamelModel):
    """Per-word lookup outcome: resolved tokens and the ones no tier knew."""
    translated: List[WordTranslation] = Field(default_factory=list)
    not_found: List[str] = Field(default_factory=list)

# --- Source Host ---

class SourceFile(CamelModel):
    content: str
    sha: str


class PullRequestRef(CamelModel):
    number: int
    url: str
