"""
Database operations for the flashcard generation system.

Uses SQLAlchemy ORM for database access. The public API uses the dataclass
models from models.py, with conversion to/from ORM models handled internally.
These are the thin, ownership-scoped accessors; the draft/review lifecycle
lives in review.py.
"""

import time
from typing import List, Optional

from sqlalchemy import select

from generations.constants import BACK_MAX_LENGTH, FRONT_MAX_LENGTH
from generations.db_engine import get_engine, get_session
from generations.errors import GenerationNotFoundError, InvalidFlashcardError
from generations.models import Candidate, Flashcard, FlashcardSource, Generation, User
from generations.orm_models import (
    Base,
    FlashcardORM,
    GenerationORM,
    UserORM,
    flashcard_orm_to_dataclass,
    generation_orm_to_dataclass,
    user_orm_to_dataclass,
)


def init_db():
    """Initialize the database schema."""
    engine = get_engine()
    Base.metadata.create_all(engine)


def validate_flashcard_fields(
    front: str,
    back: str,
    source: FlashcardSource,
    generation_id: Optional[int] = None,
):
    """Raise InvalidFlashcardError unless the fields satisfy the flashcard invariants."""
    if not front or not front.strip():
        raise InvalidFlashcardError("Front cannot be blank")
    if not back or not back.strip():
        raise InvalidFlashcardError("Back cannot be blank")
    if len(front) > FRONT_MAX_LENGTH:
        raise InvalidFlashcardError(f"Front is too long (max {FRONT_MAX_LENGTH} characters)")
    if len(back) > BACK_MAX_LENGTH:
        raise InvalidFlashcardError(f"Back is too long (max {BACK_MAX_LENGTH} characters)")
    if source is None:
        raise InvalidFlashcardError("Source is required")
    if source is not FlashcardSource.MANUAL and generation_id is None:
        raise InvalidFlashcardError(f"A {source.value} flashcard must reference its generation")


def create_user(email: str) -> User:
    """Create a user. Returns the created User."""
    with get_session() as session:
        orm = UserORM(email=email, created_at=int(time.time()))
        session.add(orm)
        session.flush()
        return user_orm_to_dataclass(orm)


def get_user(user_id: int) -> Optional[User]:
    """Get a user by ID."""
    with get_session() as session:
        orm = session.get(UserORM, user_id)
        if orm is None:
            return None
        return user_orm_to_dataclass(orm)


def get_user_by_email(email: str) -> Optional[User]:
    """Get a user by email address."""
    with get_session() as session:
        stmt = select(UserORM).where(UserORM.email == email)
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return None
        return user_orm_to_dataclass(orm)


def delete_user(user_id: int):
    """Delete a user; their generations and flashcards go with them."""
    with get_session() as session:
        orm = session.get(UserORM, user_id)
        if orm is not None:
            session.delete(orm)


def get_generation(generation_id: int, user_id: Optional[int] = None) -> Optional[Generation]:
    """Get a generation by ID, optionally scoped to its owner."""
    with get_session() as session:
        stmt = select(GenerationORM).where(GenerationORM.id == generation_id)
        if user_id is not None:
            stmt = stmt.where(GenerationORM.user_id == user_id)
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return None
        return generation_orm_to_dataclass(orm)


def list_generations(user_id: int) -> List[Generation]:
    """Get a user's generations, newest first."""
    with get_session() as session:
        stmt = (
            select(GenerationORM)
            .where(GenerationORM.user_id == user_id)
            .order_by(GenerationORM.id.desc())
        )
        orms = session.execute(stmt).scalars().all()
        return [generation_orm_to_dataclass(orm) for orm in orms]


def get_generation_candidates(generation_id: int) -> List[Candidate]:
    """Get the stored candidate list of a generation, in generation order."""
    generation = get_generation(generation_id)
    if generation is None:
        raise GenerationNotFoundError(f"No generation found with id {generation_id}")
    return generation.generated_flashcards


def is_generation_reviewed(generation_id: int) -> bool:
    """Check whether a generation has been reviewed."""
    generation = get_generation(generation_id)
    if generation is None:
        raise GenerationNotFoundError(f"No generation found with id {generation_id}")
    return generation.reviewed


def delete_generation(generation_id: int, user_id: int) -> bool:
    """Delete a user's generation. Its flashcards survive without the back-reference.

    Returns True if a generation was deleted.
    """
    with get_session() as session:
        stmt = select(GenerationORM).where(
            GenerationORM.id == generation_id,
            GenerationORM.user_id == user_id,
        )
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return False
        session.delete(orm)
        return True


def add_manual_flashcard(user_id: int, front: str, back: str) -> Flashcard:
    """Create a hand-written flashcard. Returns the created Flashcard."""
    validate_flashcard_fields(front, back, FlashcardSource.MANUAL)
    now = int(time.time())
    with get_session() as session:
        orm = FlashcardORM(
            user_id=user_id,
            generation_id=None,
            front=front,
            back=back,
            source=FlashcardSource.MANUAL.value,
            created_at=now,
            updated_at=now,
        )
        session.add(orm)
        session.flush()
        return flashcard_orm_to_dataclass(orm)


def get_flashcards_for_user(user_id: int) -> List[Flashcard]:
    """Get all of a user's flashcards in creation order."""
    with get_session() as session:
        stmt = (
            select(FlashcardORM)
            .where(FlashcardORM.user_id == user_id)
            .order_by(FlashcardORM.id.asc())
        )
        orms = session.execute(stmt).scalars().all()
        return [flashcard_orm_to_dataclass(orm) for orm in orms]


def get_flashcards_for_generation(generation_id: int) -> List[Flashcard]:
    """Get the flashcards that were accepted from a generation."""
    with get_session() as session:
        stmt = (
            select(FlashcardORM)
            .where(FlashcardORM.generation_id == generation_id)
            .order_by(FlashcardORM.id.asc())
        )
        orms = session.execute(stmt).scalars().all()
        return [flashcard_orm_to_dataclass(orm) for orm in orms]
