# lexiflow/shared/container.py
from dependency_injector import containers, providers

from lexiflow.shared.config import settings
from lexiflow.adapters.cache.memory_cache import InMemoryCache
from lexiflow.adapters.cache.redis_cache import RedisCache
from lexiflow.adapters.github_adapter import GitHubSourceHost
from lexiflow.adapters.ledger.memory_ledger import InMemoryLedgerStore
from lexiflow.adapters.ledger.redis_ledger import RedisLedgerStore
from lexiflow.adapters.llm.gemini_adapter import GeminiAdapter
from lexiflow.adapters.persistence.embedded_lexicon import EmbeddedLexicon
from lexiflow.adapters.persistence.sql_dictionary import SqlDictionaryRepository
from lexiflow.adapters.wiktionary_adapter import WiktionaryAdapter

from lexiflow.core.domain.models import GitHubConfig, LearningConfig
from lexiflow.core.use_cases.contribution import ContributionTrigger, CreateDictionaryPR
from lexiflow.core.use_cases.etymology import ResolveEtymology
from lexiflow.core.use_cases.inference_cascade import InferenceCascade
from lexiflow.core.use_cases.learned_words import LearnedWordLedger
from lexiflow.core.use_cases.translate import TranslateText


def _relational_dictionary(database_url: str) -> SqlDictionaryRepository:
    repository = SqlDictionaryRepository(database_url)
    repository.create_schema()
    return repository


class Container(containers.DeclarativeContainer):
    """
    Dependency Injection Container.

    Adapters are Singletons (one connection pool / one loaded table per
    process); use cases are Factories wired to them.
    """

    # 1. Configuration
    # Wrapping the settings object allows overriding in tests.
    config = providers.Configuration(pydantic_settings=[settings])

    # 2. Gateways (Infrastructure Adapters)

    # Edge cache: in-process for development, Redis when shared
    cache = providers.Selector(
        config.CACHE_BACKEND,
        memory=providers.Singleton(InMemoryCache),
        redis=providers.Singleton(RedisCache, redis_url=config.REDIS_URL),
    )

    ledger_store = providers.Selector(
        config.LEDGER_BACKEND,
        memory=providers.Singleton(InMemoryLedgerStore),
        redis=providers.Singleton(
            RedisLedgerStore,
            redis_url=config.REDIS_URL,
            prefix=config.LEDGER_KEY_PREFIX,
        ),
    )

    # Loaded once at startup; immutable afterwards
    lexicon = providers.Singleton(EmbeddedLexicon.from_path, config.LEXICON_PATH)

    dictionary_repository = providers.Singleton(_relational_dictionary, config.DATABASE_URL)

    reference_lexicon = providers.Singleton(
        WiktionaryAdapter,
        base_url=config.WIKTIONARY_API_BASE,
        timeout=config.WIKTIONARY_TIMEOUT,
        user_agent=config.HTTP_USER_AGENT,
    )

    llm = providers.Singleton(GeminiAdapter, api_key=config.GOOGLE_API_KEY)

    github_config = providers.Singleton(
        GitHubConfig,
        token=config.GITHUB_TOKEN,
        owner=config.GITHUB_OWNER,
        repo=config.GITHUB_REPO,
        base_branch=config.GITHUB_BASE_BRANCH,
        file_path=config.LEXICON_SOURCE_PATH,
        insert_marker=config.LEXICON_INSERT_MARKER,
    )

    # Built per contribution from the GitHubConfig it is handed
    source_host = providers.Factory(
        GitHubSourceHost,
        api_url=config.GITHUB_API_URL,
    )

    # 3. Use Cases (Application Logic)

    inference_cascade = providers.Singleton(
        InferenceCascade.from_models,
        llm=llm,
        model_ids=providers.List(config.AI_FAST_MODEL, config.AI_FALLBACK_MODEL),
        timeout=config.AI_TIMEOUT_SECONDS,
    )

    learning_defaults = providers.Singleton(
        LearningConfig,
        pr_threshold=config.PR_THRESHOLD,
        max_bulk_size=config.MAX_BULK_SIZE,
        max_words_per_pr=config.MAX_WORDS_PER_PR,
        auto_trigger=config.AUTO_TRIGGER,
        min_confidence=config.MIN_CONFIDENCE,
    )

    learned_word_ledger = providers.Factory(
        LearnedWordLedger,
        store=ledger_store,
        defaults=learning_defaults,
    )

    create_dictionary_pr = providers.Factory(
        CreateDictionaryPR,
        host_factory=source_host.provider,
    )

    # Singleton: owns the set of in-flight background contributions
    contribution_trigger = providers.Singleton(
        ContributionTrigger,
        ledger=learned_word_ledger,
        create_pr=create_dictionary_pr,
        github_config=github_config,
        lock_ttl_seconds=config.PROCESSING_LOCK_TTL_SECONDS,
    )

    translate_use_case = providers.Factory(
        TranslateText,
        lexicon=lexicon,
        cache=cache,
        cascade=inference_cascade,
        dictionary=dictionary_repository,
        ledger=learned_word_ledger,
        trigger=contribution_trigger,
        cache_version=config.CACHE_VERSION,
        cache_ttl=config.CACHE_TTL_SECONDS,
        unresolved_ttl=config.UNRESOLVED_CACHE_TTL_SECONDS,
        max_text_length=config.MAX_TEXT_LENGTH,
        max_batch=config.MAX_BATCH_TEXTS,
    )

    etymology_use_case = providers.Factory(
        ResolveEtymology,
        lexicon=lexicon,
        cache=cache,
        reference=reference_lexicon,
        cascade=inference_cascade,
        cache_version=config.CACHE_VERSION,
        ttl=config.ETYMOLOGY_CACHE_TTL_SECONDS,
    )


# Instantiate the container for global access (e.g. by the CLI)
container = Container()
