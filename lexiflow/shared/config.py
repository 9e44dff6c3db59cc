from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from enum import Enum
from typing import Optional

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class AppEnv(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class Settings(BaseSettings):
    """
    Central Configuration Registry.
    Strictly typed and validated via Pydantic.
    """

    # --- Application Meta ---
    APP_NAME: str = "lexiflow"
    APP_ENV: AppEnv = AppEnv.DEVELOPMENT
    DEBUG: bool = False

    # --- Logging & Observability ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # --- Edge Cache ---
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_BACKEND: StoreBackend = StoreBackend.MEMORY
    CACHE_VERSION: str = "v1"
    CACHE_TTL_SECONDS: int = 86400
    ETYMOLOGY_CACHE_TTL_SECONDS: int = 604800  # 7 days
    UNRESOLVED_CACHE_TTL_SECONDS: int = 300
    MAX_TEXT_LENGTH: int = 5000
    MAX_BATCH_TEXTS: int = 50

    # --- Learned Word Ledger ---
    LEDGER_BACKEND: StoreBackend = StoreBackend.MEMORY
    LEDGER_KEY_PREFIX: str = "lexiflow"
    PROCESSING_LOCK_TTL_SECONDS: int = 900
    PR_THRESHOLD: int = 10
    MAX_BULK_SIZE: int = 1000
    MAX_WORDS_PER_PR: int = 500
    AUTO_TRIGGER: bool = True
    MIN_CONFIDENCE: float = 0.7

    # --- Relational Dictionary ---
    DATABASE_URL: str = "sqlite:///./lexiflow.db"

    # --- Embedded Lexicon ---
    LEXICON_PATH: str = str(PACKAGE_DIR / "data" / "core_lexicon.json")

    # --- External Lexicon (Wiktionary) ---
    WIKTIONARY_API_BASE: str = "https://en.wiktionary.org/api/rest_v1"
    WIKTIONARY_TIMEOUT: int = 10
    HTTP_USER_AGENT: str = "lexiflow/1.0 (dictionary resolver)"

    # --- AI Inference Cascade ---
    GOOGLE_API_KEY: Optional[str] = None
    AI_FAST_MODEL: str = "gemini-1.5-flash"
    AI_FALLBACK_MODEL: str = "gemini-1.5-pro"
    AI_TIMEOUT_SECONDS: float = 20.0

    # --- Contribution (GitHub) ---
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_OWNER: Optional[str] = None
    GITHUB_REPO: Optional[str] = None
    GITHUB_BASE_BRANCH: str = "main"
    GITHUB_API_URL: str = "https://api.github.com"
    LEXICON_SOURCE_PATH: str = "lexiflow/data/core_lexicon.json"
    LEXICON_INSERT_MARKER: str = '"words": {'

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
