# lexiflow/core/use_cases/contribution.py
import asyncio
from datetime import datetime
from typing import Callable, Optional, Sequence, Set

import structlog

from lexiflow.core.domain.exceptions import (
    ContributionError,
    ContributionInProgressError,
    DomainError,
)
from lexiflow.core.domain.models import ContributionResult, GitHubConfig, LearnedWord, utcnow
from lexiflow.core.ports.source_host import ISourceHost
from lexiflow.core.use_cases.learned_words import (
    LearnedWordLedger,
    generate_dict_entries,
    is_contribution_ready,
)
from lexiflow.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

SourceHostFactory = Callable[[GitHubConfig], ISourceHost]

SAMPLE_TRANSLATIONS = 5


def build_pr_title(words: Sequence[LearnedWord]) -> str:
    return f"Dictionary Update: {len(words)} New Words"


def build_commit_message(words: Sequence[LearnedWord]) -> str:
    listing = "\n".join(f"- {w.word}" for w in words)
    return f"feat(dictionary): Add {len(words)} learned words\n\nWords added:\n{listing}"


def build_pr_body(words: Sequence[LearnedWord], generated_at: datetime, min_confidence: float = 0.7) -> str:
    rows = []
    for w in words:
        sample = ", ".join(f"{lang}: {text}" for lang, text in list(w.translations.items())[:SAMPLE_TRANSLATIONS])
        rows.append(f"| {w.word} | {w.detected_pos or '-'} | {sample} | {w.seen_count} | {w.confidence * 100:.0f}% |")

    return "\n".join([
        "## Auto-Generated Dictionary Update",
        "",
        f"This PR adds **{len(words)} new words** that were learned through AI translation.",
        "",
        "### Summary",
        f"- **Words Added:** {len(words)}",
        f"- **Generated:** {generated_at.isoformat()}",
        "- **Source:** lexiflow learned word ledger",
        "",
        "### Words",
        "",
        "| Word | POS | Sample Translations | Seen | Confidence |",
        "|------|-----|---------------------|------|------------|",
        *rows,
        "",
        "### Quality Notes",
        f"- Only words with confidence >= {min_confidence * 100:.0f}% or seen at least 3 times are included",
        "- Manual review recommended for specialized or technical terms",
        "",
    ])


def splice_entries(content: str, marker: str, entries: str) -> str:
    """
    Inserts `entries` right after `marker`. A separating comma is added only
    when the object after the marker already has members, so a JSON lexicon
    stays valid JSON.
    """
    position = content.find(marker)
    if position == -1:
        raise ContributionError(f"Could not find insertion marker {marker!r} in the lexicon source.")

    after = position + len(marker)
    rest = content[after:]
    has_members = not rest.lstrip().startswith("}")
    separator = "," if has_members else ""
    return f"{content[:after]}\n{entries}{separator}{rest}"


class CreateDictionaryPR:
    """
    Use Case: packages learned words into a proposed change against the
    canonical lexicon source.

    Steps (any failure aborts the rest and is reported, never raised):
    1. Read the base branch head.
    2. Create `dictionary-update-<ms>` from it.
    3. Fetch the lexicon file and splice in the generated entries.
    4. Commit the file to the new branch.
    5. Open the pull request.
    """

    def __init__(self, host_factory: SourceHostFactory, clock: Callable[[], datetime] = utcnow):
        self.host_factory = host_factory
        self.clock = clock

    async def execute(self, config: GitHubConfig, words: Sequence[LearnedWord],
                      min_confidence: float = 0.7) -> ContributionResult:
        if not (config.token and config.owner and config.repo):
            return ContributionResult(success=False, error="Missing GitHub configuration")
        if not words:
            return ContributionResult(success=False, error="No words to add")

        now = self.clock()
        branch = f"dictionary-update-{int(now.timestamp() * 1000)}"
        host = self.host_factory(config)

        with tracer.start_as_current_span("use_case.create_dictionary_pr") as span:
            span.set_attribute("app.word_count", len(words))
            span.set_attribute("app.branch", branch)

            try:
                base_sha = await host.get_branch_sha(config.base_branch)
                await host.create_branch(branch, base_sha)

                source = await host.get_file(config.file_path, config.base_branch)
                updated = splice_entries(source.content, config.insert_marker, generate_dict_entries(words))

                await host.update_file(config.file_path, updated, build_commit_message(words), branch, source.sha)
                pr = await host.open_pull_request(
                    build_pr_title(words), build_pr_body(words, now, min_confidence), branch, config.base_branch
                )
            except DomainError as e:
                logger.error("contribution_failed", branch=branch, error=e.message)
                return ContributionResult(success=False, error=e.message)
            except Exception as e:
                logger.error("contribution_failed", branch=branch, error=str(e), exc_info=True)
                return ContributionResult(success=False, error="Unexpected failure while talking to the source host")

            logger.info("contribution_opened", pr_number=pr.number, pr_url=pr.url, words=len(words))
            return ContributionResult(
                success=True, pr_number=pr.number, pr_url=pr.url, words=[w.word for w in words]
            )


class ContributionTrigger:
    """
    Runs a contribution under the ledger's processing guard.

    The guard is acquired atomically before any external call and is
    released on every exit path, success or failure.
    """

    def __init__(
        self,
        ledger: LearnedWordLedger,
        create_pr: CreateDictionaryPR,
        github_config: GitHubConfig,
        lock_ttl_seconds: int = 900,
    ):
        self.ledger = ledger
        self.create_pr = create_pr
        self.github_config = github_config
        self.lock_ttl_seconds = lock_ttl_seconds
        self._tasks: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        c = self.github_config
        return bool(c.token and c.owner and c.repo)

    async def run(self) -> ContributionResult:
        store = self.ledger.store
        token = await store.try_acquire_processing(self.lock_ttl_seconds)
        if token is None:
            raise ContributionInProgressError()

        try:
            config = await self.ledger.get_config()
            snapshot = await store.pending_keys()
            records = await store.get_words(snapshot)
            eligible = [r for r in records if is_contribution_ready(r, config.min_confidence)]
            eligible = eligible[:config.max_words_per_pr]

            if not eligible:
                logger.info("contribution_skipped", reason="no_eligible_words", pending=len(snapshot))
                return ContributionResult(success=False, error="No eligible words to contribute")

            result = await self.create_pr.execute(self.github_config, eligible, config.min_confidence)

            if result.success:
                # Only contributed keys leave the queue, plus keys whose record is gone.
                known = {r.word for r in records}
                orphaned = [k for k in snapshot if k not in known]
                await store.remove_pending([r.word for r in eligible] + orphaned)
                await store.record_sync(result.pr_number, utcnow())
            return result
        finally:
            await store.release_processing(token)

    def schedule(self) -> Optional[asyncio.Task]:
        """Fires `run()` as a tracked background task."""
        if not self.enabled:
            logger.info("contribution_not_configured")
            return None
        task = asyncio.create_task(self._run_in_background())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_in_background(self) -> None:
        try:
            result = await self.run()
        except ContributionInProgressError:
            logger.info("contribution_skipped", reason="in_progress")
            return
        except Exception as e:
            logger.error("contribution_crashed", error=str(e), exc_info=True)
            return
        logger.info("contribution_finished", success=result.success, pr_number=result.pr_number,
                    error=result.error)

    async def drain(self) -> None:
        """Waits for every scheduled contribution to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
