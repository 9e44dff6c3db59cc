# tests/conftest.py
import json

import pytest
import structlog
from unittest.mock import AsyncMock, MagicMock
from dependency_injector import providers

from lexiflow.shared.container import Container
from lexiflow.shared.resilience import reset_circuit_breakers
from lexiflow.adapters.cache.memory_cache import InMemoryCache
from lexiflow.adapters.ledger.memory_ledger import InMemoryLedgerStore
from lexiflow.core.domain.models import GitHubConfig, PullRequestRef, SourceFile
from lexiflow.core.ports.dictionary_repository import IDictionaryRepository
from lexiflow.core.ports.llm_port import ILanguageModel
from lexiflow.core.ports.reference_lexicon import IReferenceLexicon
from lexiflow.core.ports.source_host import ISourceHost
from lexiflow.core.use_cases.inference_cascade import InferenceCascade, InferenceStrategy

SAMPLE_LEXICON_SOURCE = json.dumps(
    {
        "meta": {"version": "1.0.0"},
        "words": {
            "hello": {"translations": {"es": "hola"}, "pos": "interjection", "frequency": 1},
        },
    },
    indent=2,
)


@pytest.fixture(autouse=True)
def fresh_circuit_breakers():
    """Breakers are process-wide; a failure in one test must not open them for the next."""
    reset_circuit_breakers()
    yield
    reset_circuit_breakers()


@pytest.fixture(autouse=True)
def fresh_structlog():
    """A CLI run configures logging against the stream pytest captured for that test."""
    yield
    structlog.reset_defaults()


@pytest.fixture(scope="function")
def memory_cache():
    return InMemoryCache()


@pytest.fixture(scope="function")
def ledger_store():
    return InMemoryLedgerStore()


@pytest.fixture(scope="function")
def mock_llm():
    """Returns a mock inference binding."""
    llm = MagicMock(spec=ILanguageModel)
    # Async methods must be mocked with AsyncMock
    llm.run = AsyncMock(return_value="")
    return llm


@pytest.fixture(scope="function")
def cascade(mock_llm):
    return InferenceCascade(
        mock_llm,
        [
            InferenceStrategy(name="fast", model_id="fast-model", timeout=1.0),
            InferenceStrategy(name="fallback", model_id="fallback-model", timeout=1.0),
        ],
    )


@pytest.fixture(scope="function")
def mock_reference():
    """Returns a mock external lexicon that knows no words."""
    reference = MagicMock(spec=IReferenceLexicon)
    reference.fetch_entry = AsyncMock(return_value=None)
    return reference


@pytest.fixture(scope="function")
def mock_dictionary():
    """Returns a mock relational dictionary that knows no words."""
    repo = MagicMock(spec=IDictionaryRepository)
    repo.lookup_words = AsyncMock(return_value={})
    repo.lookup_word = AsyncMock(return_value=None)
    return repo


@pytest.fixture(scope="function")
def mock_host():
    """Returns a mock source host whose every step succeeds."""
    host = MagicMock(spec=ISourceHost)
    host.get_branch_sha = AsyncMock(return_value="base-sha")
    host.create_branch = AsyncMock()
    host.get_file = AsyncMock(return_value=SourceFile(content=SAMPLE_LEXICON_SOURCE, sha="file-sha"))
    host.update_file = AsyncMock()
    host.open_pull_request = AsyncMock(
        return_value=PullRequestRef(number=42, url="https://github.com/acme/lexicon/pull/42")
    )
    return host


@pytest.fixture(scope="function")
def github_config():
    return GitHubConfig(token="test-token", owner="acme", repo="lexicon")


@pytest.fixture(scope="function")
def container(memory_cache, ledger_store, cascade, mock_reference, mock_dictionary, mock_host, github_config):
    """
    Sets up the Dependency Injection Container for testing.
    It overrides real infrastructure providers with in-memory stores and the mocks above.
    The embedded lexicon is the real bundled one.
    """
    container = Container()

    container.cache.override(memory_cache)
    container.ledger_store.override(ledger_store)
    container.inference_cascade.override(cascade)
    container.reference_lexicon.override(mock_reference)
    container.dictionary_repository.override(mock_dictionary)
    container.github_config.override(github_config)
    container.source_host.override(providers.Callable(lambda config: mock_host))

    yield container

    # Clean up overrides after test
    container.unwire()
    container.reset_override()
