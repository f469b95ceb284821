"""
SQLAlchemy ORM models for the flashcard generation system.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from generations.models import (
    Candidate,
    Flashcard,
    FlashcardSource,
    Generation,
    User,
)


class CandidateList(TypeDecorator):
    """Represents an ordered list of {front, back} records as a JSON string.

    Reads never raise: a NULL, undecodable or non-list payload comes back as
    an empty list so that old or corrupted rows stay readable.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[List], dialect) -> Optional[str]:
        if value is None:
            return None
        return json.dumps([
            c.to_dict() if isinstance(c, Candidate) else c for c in value
        ])

    def process_result_value(self, value: Optional[str], dialect) -> List[dict]:
        if value is None:
            return []
        try:
            decoded = json.loads(value)
            # Payloads written by an older client were double-encoded
            if isinstance(decoded, str):
                decoded = json.loads(decoded)
        except (TypeError, ValueError):
            return []
        if not isinstance(decoded, list):
            return []
        return decoded


class Base(DeclarativeBase):
    pass


class UserORM(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


class GenerationORM(Base):
    """SQLAlchemy model for generations table."""

    __tablename__ = "generations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    source_text: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    generation_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    generated_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generated_flashcards: Mapped[List[dict]] = mapped_column(CandidateList, nullable=True)
    reviewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accepted_unedited_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    accepted_edited_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_generations_user_id", "user_id"),
    )


class FlashcardORM(Base):
    """SQLAlchemy model for flashcards table."""

    __tablename__ = "flashcards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    generation_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("generations.id", ondelete="SET NULL"), nullable=True
    )
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_flashcards_user_id", "user_id"),
        Index("idx_flashcards_generation_id", "generation_id"),
    )


# Conversion functions between ORM models and dataclasses


def candidates_from_payload(payload: Optional[List]) -> List[Candidate]:
    """Turn a stored candidate payload into Candidates, skipping malformed entries."""
    candidates = []
    for item in payload or []:
        if not isinstance(item, dict):
            continue
        front, back = item.get("front"), item.get("back")
        if isinstance(front, str) and isinstance(back, str):
            candidates.append(Candidate(front=front, back=back))
    return candidates


def user_orm_to_dataclass(orm: UserORM) -> User:
    """Convert a UserORM instance to a User dataclass."""
    return User(id=orm.id, email=orm.email, created_at=orm.created_at or 0)


def generation_orm_to_dataclass(orm: GenerationORM) -> Generation:
    """Convert a GenerationORM instance to a Generation dataclass."""
    return Generation(
        id=orm.id,
        user_id=orm.user_id,
        source_text=orm.source_text,
        model=orm.model,
        generation_duration=orm.generation_duration,
        generated_count=orm.generated_count or 0,
        generated_flashcards=candidates_from_payload(orm.generated_flashcards),
        reviewed=bool(orm.reviewed),
        accepted_unedited_count=orm.accepted_unedited_count,
        accepted_edited_count=orm.accepted_edited_count,
        created_at=orm.created_at or 0,
        updated_at=orm.updated_at or 0,
    )


def flashcard_orm_to_dataclass(orm: FlashcardORM) -> Flashcard:
    """Convert a FlashcardORM instance to a Flashcard dataclass."""
    return Flashcard(
        id=orm.id,
        user_id=orm.user_id,
        generation_id=orm.generation_id,
        front=orm.front,
        back=orm.back,
        source=FlashcardSource(orm.source),
        created_at=orm.created_at or 0,
        updated_at=orm.updated_at or 0,
    )
