"""
Acceptance statistics computed on demand from stored generations and flashcards.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select

from generations.db_engine import get_session
from generations.models import AI_SOURCES
from generations.orm_models import FlashcardORM, GenerationORM, UserORM


def _percentage(part: int, total: int) -> float:
    """Percentage to one decimal place, rounding halves up (1 of 16 is 6.3)."""
    if not total:
        return 0.0
    value = Decimal(part * 100) / Decimal(total)
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _acceptance_rate(user_id: Optional[int]) -> float:
    stmt = select(
        func.coalesce(func.sum(GenerationORM.generated_count), 0),
        func.coalesce(func.sum(GenerationORM.accepted_unedited_count), 0),
        func.coalesce(func.sum(GenerationORM.accepted_edited_count), 0),
    )
    if user_id is not None:
        stmt = stmt.where(GenerationORM.user_id == user_id)

    with get_session() as session:
        generated, unedited, edited = session.execute(stmt).one()
    return _percentage(unedited + edited, generated)


def _ai_share(user_id: Optional[int]) -> float:
    total_stmt = select(func.count(FlashcardORM.id))
    ai_stmt = select(func.count(FlashcardORM.id)).where(
        FlashcardORM.source.in_([source.value for source in AI_SOURCES])
    )
    if user_id is not None:
        total_stmt = total_stmt.where(FlashcardORM.user_id == user_id)
        ai_stmt = ai_stmt.where(FlashcardORM.user_id == user_id)

    with get_session() as session:
        total = session.execute(total_stmt).scalar_one()
        ai_count = session.execute(ai_stmt).scalar_one()
    return _percentage(ai_count, total)


def user_acceptance_rate(user_id: int) -> float:
    """Percentage of a user's generated candidates that were accepted, edited or not."""
    return _acceptance_rate(user_id)


def user_ai_share(user_id: int) -> float:
    """Percentage of a user's flashcards that came from a generation."""
    return _ai_share(user_id)


def system_acceptance_rate() -> float:
    """Acceptance rate across every user's generations."""
    return _acceptance_rate(None)


def system_ai_share() -> float:
    """AI-generated share across every user's flashcards."""
    return _ai_share(None)


def system_total_flashcards() -> int:
    with get_session() as session:
        return session.execute(select(func.count(FlashcardORM.id))).scalar_one()


def system_total_users() -> int:
    with get_session() as session:
        return session.execute(select(func.count(UserORM.id))).scalar_one()
