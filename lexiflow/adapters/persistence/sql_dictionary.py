# lexiflow/adapters/persistence/sql_dictionary.py

from __future__ import annotations

import asyncio
import json
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence, TypeVar

import structlog
from pydantic import ValidationError
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from lexiflow.core.domain.models import (
    DictionaryEntry,
    DictionaryExport,
    DictionaryStats,
    EtymologyData,
    LearnedTranslationStats,
    LexiconMatch,
)
from lexiflow.core.text.normalization import normalize_word
from lexiflow.adapters.persistence.sql_models import (
    Base,
    DictionaryEntryRow,
    LearnedTranslationRow,
)

logger = structlog.get_logger()

T = TypeVar("T")


def build_engine(database_url: str, echo: bool = False) -> Engine:
    # SQLite needs a special flag when used from worker threads.
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, echo=echo, future=True, connect_args=connect_args)


def _load_json(raw: Optional[str], default: Any = None) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return default


def row_to_entry(row: DictionaryEntryRow) -> DictionaryEntry:
    """Malformed JSON columns degrade to empty or absent fields."""
    translations = _load_json(row.translations_json, {})
    if not isinstance(translations, dict):
        translations = {}

    etymology = None
    raw_etymology = _load_json(row.etymology_json)
    if isinstance(raw_etymology, dict):
        try:
            etymology = EtymologyData.model_validate(raw_etymology)
        except ValidationError:
            etymology = None

    variants = _load_json(row.variants_json)
    if not isinstance(variants, list):
        variants = None

    return DictionaryEntry(
        translations={str(k): str(v) for k, v in translations.items()},
        etymology=etymology,
        pos=row.pos,
        frequency=row.frequency,
        variants=variants,
    )


class SqlDictionaryRepository:
    """
    Relational dictionary backed by SQLAlchemy.

    Queries are synchronous ORM calls pushed onto a worker thread so the
    event loop is never blocked.
    """

    def __init__(self, database_url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.engine = engine or build_engine(database_url, echo=echo)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            class_=Session,
        )

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def _run(self, fn: Callable[[Session], T]) -> T:
        def work() -> T:
            with self._session() as session:
                return fn(session)

        return await asyncio.to_thread(work)

    # ------------------------------------------------------------------
    # Dictionary entries
    # ------------------------------------------------------------------

    async def lookup_word(self, word: str) -> Optional[DictionaryEntry]:
        key = normalize_word(word)

        def query(session: Session) -> Optional[DictionaryEntry]:
            stmt = select(DictionaryEntryRow).where(DictionaryEntryRow.word == key).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return row_to_entry(row) if row else None

        return await self._run(query)

    async def lookup_words(self, words: Sequence[str]) -> Dict[str, DictionaryEntry]:
        keys = sorted({normalize_word(w) for w in words if w})
        if not keys:
            return {}

        def query(session: Session) -> Dict[str, DictionaryEntry]:
            stmt = select(DictionaryEntryRow).where(DictionaryEntryRow.word.in_(keys))
            return {row.word: row_to_entry(row) for row in session.execute(stmt).scalars()}

        return await self._run(query)

    async def search(self, pattern: str, limit: int = 20, pos: Optional[str] = None) -> List[LexiconMatch]:
        like = f"%{normalize_word(pattern)}%"

        def query(session: Session) -> List[LexiconMatch]:
            stmt = select(DictionaryEntryRow).where(DictionaryEntryRow.word.like(like))
            if pos:
                stmt = stmt.where(DictionaryEntryRow.pos == pos)
            stmt = stmt.order_by(DictionaryEntryRow.frequency.asc()).limit(limit)
            return [
                LexiconMatch(word=row.word, entry=row_to_entry(row))
                for row in session.execute(stmt).scalars()
            ]

        return await self._run(query)

    async def stats(self) -> DictionaryStats:
        def query(session: Session) -> DictionaryStats:
            word_count = session.execute(select(func.count(DictionaryEntryRow.id))).scalar_one()

            category_counts: Dict[str, int] = {}
            pos_rows = session.execute(
                select(DictionaryEntryRow.pos, func.count(DictionaryEntryRow.id)).group_by(DictionaryEntryRow.pos)
            )
            for pos, count in pos_rows:
                category_counts[pos or "unknown"] = count

            sample = session.execute(select(DictionaryEntryRow.translations_json).limit(1)).scalar_one_or_none()
            sample_translations = _load_json(sample, {})
            languages = list(sample_translations.keys()) if isinstance(sample_translations, dict) else []

            return DictionaryStats(
                word_count=word_count,
                languages_supported=languages,
                category_counts=category_counts,
            )

        return await self._run(query)

    async def get_etymology(self, word: str) -> Optional[EtymologyData]:
        entry = await self.lookup_word(word)
        return entry.etymology if entry else None

    async def add_entry(self, word: str, entry: DictionaryEntry, is_core: bool = True) -> None:
        key = normalize_word(word)
        etymology = entry.etymology.model_dump_json(by_alias=True, exclude_none=True) if entry.etymology else None

        def write(session: Session) -> None:
            row = session.execute(
                select(DictionaryEntryRow).where(DictionaryEntryRow.word == key)
            ).scalar_one_or_none()
            if row is None:
                row = DictionaryEntryRow(word=key)
                session.add(row)
            row.translations_json = json.dumps(entry.translations, ensure_ascii=False)
            row.etymology_json = etymology
            row.pos = entry.pos
            row.frequency = entry.frequency if entry.frequency is not None else 999
            row.variants_json = json.dumps(entry.variants, ensure_ascii=False) if entry.variants else None
            row.is_core = is_core

        await self._run(write)

    async def export_entries(self, core_only: bool = False) -> DictionaryExport:
        def query(session: Session) -> DictionaryExport:
            stmt = select(DictionaryEntryRow)
            if core_only:
                stmt = stmt.where(DictionaryEntryRow.is_core.is_(True))
            stmt = stmt.order_by(DictionaryEntryRow.frequency.asc())
            entries = [
                LexiconMatch(word=row.word, entry=row_to_entry(row))
                for row in session.execute(stmt).scalars()
            ]
            return DictionaryExport(entries=entries, count=len(entries))

        return await self._run(query)

    # ------------------------------------------------------------------
    # Learned translations
    # ------------------------------------------------------------------

    async def store_learned_translation(
        self, word: str, language: str, translation: str, confidence: float = 0.9, source: str = "ai"
    ) -> None:
        key = normalize_word(word)

        def write(session: Session) -> None:
            row = session.execute(
                select(LearnedTranslationRow).where(
                    LearnedTranslationRow.word == key,
                    LearnedTranslationRow.target_language == language,
                )
            ).scalar_one_or_none()
            if row is None:
                session.add(
                    LearnedTranslationRow(
                        word=key,
                        target_language=language,
                        translation=translation,
                        confidence=confidence,
                        source=source,
                    )
                )
            else:
                row.translation = translation
                row.confidence = confidence

        await self._run(write)

    async def get_learned_translation(self, word: str, language: str) -> Optional[str]:
        key = normalize_word(word)

        def query(session: Session) -> Optional[str]:
            stmt = select(LearnedTranslationRow.translation).where(
                LearnedTranslationRow.word == key,
                LearnedTranslationRow.target_language == language,
            )
            return session.execute(stmt).scalar_one_or_none() or None

        return await self._run(query)

    async def learned_stats(self) -> LearnedTranslationStats:
        def query(session: Session) -> LearnedTranslationStats:
            total = session.execute(select(func.count(LearnedTranslationRow.id))).scalar_one()
            by_language = {
                lang: count
                for lang, count in session.execute(
                    select(LearnedTranslationRow.target_language, func.count(LearnedTranslationRow.id))
                    .group_by(LearnedTranslationRow.target_language)
                )
            }
            verified = session.execute(
                select(func.count(LearnedTranslationRow.id)).where(LearnedTranslationRow.verified.is_(True))
            ).scalar_one()
            return LearnedTranslationStats(total=total, by_language=by_language, verified=verified)

        return await self._run(query)
