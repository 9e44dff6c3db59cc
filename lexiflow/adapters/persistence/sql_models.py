# lexiflow/adapters/persistence/sql_models.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

Base = declarative_base()


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class DictionaryEntryRow(Base):
    """
    One headword of the relational dictionary.

    Translation, etymology and variant payloads are stored as JSON text so
    that the table can be seeded from plain SQL dumps.
    """

    __tablename__ = "dictionary_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    translations_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    etymology_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pos: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)
    frequency: Mapped[int] = mapped_column(Integer, index=True, default=999)
    variants_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_language: Mapped[str] = mapped_column(String(16), default="en")
    is_core: Mapped[bool] = mapped_column(Boolean, index=True, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class LearnedTranslationRow(Base):
    """AI or user supplied translation for one (word, target language) pair."""

    __tablename__ = "learned_words"
    __table_args__ = (UniqueConstraint("word", "target_language", name="uq_learned_word_language"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    target_language: Mapped[str] = mapped_column(String(16), index=True, nullable=False)
    translation: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, default=0.9)
    source: Mapped[str] = mapped_column(String(32), default="ai")
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
