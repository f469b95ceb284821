"""
Draft/review lifecycle of a generation.

A generation is created as a draft holding the model's candidates. Reviewing
it is a single unit of work: the accepted candidates become flashcards and
the generation is marked reviewed with its acceptance counters fixed, or
nothing changes at all. A reviewed generation never goes back to draft.
"""

import time
from typing import List, Mapping, Optional, Tuple, Union

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from generations.constants import SOURCE_TEXT_MAX_LENGTH, SOURCE_TEXT_MIN_LENGTH
from generations.database import validate_flashcard_fields
from generations.db_engine import get_session
from generations.errors import (
    AlreadyReviewedError,
    EmptySelectionError,
    GenerationNotFoundError,
    InvalidSourceTextError,
)
from generations.generator import FlashcardGenerator
from generations.models import (
    Candidate,
    FlashcardSource,
    Generation,
    ReviewResult,
    Selection,
)
from generations.orm_models import (
    FlashcardORM,
    GenerationORM,
    candidates_from_payload,
    generation_orm_to_dataclass,
)
from util.logging_util import setup_logger

logger = setup_logger(__name__)

SelectionInput = Union[Selection, dict]


def validate_source_text(source_text: str):
    """Raise InvalidSourceTextError unless the text is within the length bounds."""
    if source_text is None or not source_text.strip():
        raise InvalidSourceTextError("Source text cannot be blank")
    if len(source_text) < SOURCE_TEXT_MIN_LENGTH:
        raise InvalidSourceTextError(
            f"Source text is too short (minimum is {SOURCE_TEXT_MIN_LENGTH} characters)"
        )
    if len(source_text) > SOURCE_TEXT_MAX_LENGTH:
        raise InvalidSourceTextError(
            f"Source text is too long (maximum is {SOURCE_TEXT_MAX_LENGTH} characters)"
        )


def create_draft(user_id: int, source_text: str, generator: FlashcardGenerator) -> Generation:
    """
    Generate candidates for source text and store them as a draft generation.

    Any error from validation or from the generator propagates unchanged and
    nothing is stored.
    """
    validate_source_text(source_text)

    result = generator.generate(source_text)

    now = int(time.time())
    with get_session() as session:
        orm = GenerationORM(
            user_id=user_id,
            source_text=source_text,
            model=result.metadata.model,
            generation_duration=result.metadata.duration_ms,
            generated_count=result.metadata.count,
            generated_flashcards=[c.to_dict() for c in result.candidates],
            reviewed=False,
            accepted_unedited_count=None,
            accepted_edited_count=None,
            created_at=now,
            updated_at=now,
        )
        session.add(orm)
        session.flush()
        logger.info(
            f"Created draft generation {orm.id} for user {user_id} "
            f"with {result.metadata.count} candidates"
        )
        return generation_orm_to_dataclass(orm)


def _load_draft(session: Session, generation_id: int, user_id: Optional[int]) -> GenerationORM:
    stmt = select(GenerationORM).where(GenerationORM.id == generation_id)
    if user_id is not None:
        stmt = stmt.where(GenerationORM.user_id == user_id)
    orm = session.execute(stmt).scalar_one_or_none()
    if orm is None:
        raise GenerationNotFoundError(f"No generation found with id {generation_id}")
    if orm.reviewed:
        raise AlreadyReviewedError(f"Generation {generation_id} has already been reviewed")
    return orm


def _claim_for_review(session: Session, generation_id: int, unedited: int, edited: int):
    """Move the generation from draft to reviewed, fixing its counters.

    The update only matches a draft, so of two concurrent reviews only one
    can succeed; the other raises and its transaction is rolled back.
    """
    result = session.execute(
        update(GenerationORM)
        .where(GenerationORM.id == generation_id, GenerationORM.reviewed.is_(False))
        .values(
            reviewed=True,
            accepted_unedited_count=unedited,
            accepted_edited_count=edited,
            updated_at=int(time.time()),
        )
    )
    if result.rowcount != 1:
        raise AlreadyReviewedError(f"Generation {generation_id} has already been reviewed")


def was_edited(originals: List[Candidate], index: int, selection: Selection) -> bool:
    """Compare a submission against the stored candidate at the same position.

    With no stored candidate at that index there is nothing to compare with,
    so the submission counts as unedited.
    """
    if index < 0 or index >= len(originals):
        return False
    original = originals[index]
    return selection.front != original.front or selection.back != original.back


def _selected_entries(selections: Mapping) -> List[Tuple[int, Selection]]:
    entries = []
    seen = set()
    for key, value in selections.items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid candidate index: {key!r}")
        if index in seen:
            raise ValueError(f"Candidate index {index} was submitted more than once")
        seen.add(index)
        selection = value if isinstance(value, Selection) else Selection.from_dict(value)
        if selection.selected:
            entries.append((index, selection))
    return sorted(entries, key=lambda entry: entry[0])


def _new_flashcard(generation: GenerationORM, front: str, back: str,
                   source: FlashcardSource, now: int) -> FlashcardORM:
    validate_flashcard_fields(front, back, source, generation.id)
    return FlashcardORM(
        user_id=generation.user_id,
        generation_id=generation.id,
        front=front,
        back=back,
        source=source.value,
        created_at=now,
        updated_at=now,
    )


def review_selected(
    generation_id: int,
    selections: Mapping[Union[int, str], SelectionInput],
    user_id: Optional[int] = None,
) -> ReviewResult:
    """
    Accept the selected candidates of a draft, with any edits the user made.

    Args:
        generation_id: The draft to review.
        selections: Sparse mapping of candidate index to the user's decision.
            Indices may be ints or numeric strings; values are Selections or
            ``{selected, front, back}`` dicts.
        user_id: When given, the generation must belong to this user.

    Raises:
        GenerationNotFoundError: no such generation (for this user).
        AlreadyReviewedError: the generation is not a draft any more.
        EmptySelectionError: nothing was selected; the draft is left as is.
        InvalidFlashcardError: a submitted front/back breaks the limits.
    """
    now = int(time.time())
    with get_session() as session:
        generation = _load_draft(session, generation_id, user_id)
        originals = candidates_from_payload(generation.generated_flashcards)

        entries = _selected_entries(selections)
        if not entries:
            raise EmptySelectionError("No flashcards were selected")

        flashcards = []
        edited_count = 0
        for index, selection in entries:
            edited = was_edited(originals, index, selection)
            source = FlashcardSource.AI_EDITED if edited else FlashcardSource.AI_FULL
            edited_count += int(edited)
            flashcards.append(
                _new_flashcard(generation, selection.front, selection.back, source, now)
            )

        unedited_count = len(flashcards) - edited_count
        _claim_for_review(session, generation_id, unedited_count, edited_count)
        session.add_all(flashcards)

    logger.info(
        f"Reviewed generation {generation_id}: saved {len(flashcards)} flashcards "
        f"({unedited_count} unedited, {edited_count} edited)"
    )
    return ReviewResult(
        saved_count=len(flashcards),
        unedited_count=unedited_count,
        edited_count=edited_count,
    )


def review_all(generation_id: int, user_id: Optional[int] = None) -> ReviewResult:
    """
    Accept every stored candidate of a draft, unedited.

    Raises:
        GenerationNotFoundError: no such generation (for this user).
        AlreadyReviewedError: the generation is not a draft any more.
    """
    now = int(time.time())
    with get_session() as session:
        generation = _load_draft(session, generation_id, user_id)
        candidates = candidates_from_payload(generation.generated_flashcards)

        flashcards = [
            _new_flashcard(generation, c.front, c.back, FlashcardSource.AI_FULL, now)
            for c in candidates
        ]

        _claim_for_review(session, generation_id, len(flashcards), 0)
        session.add_all(flashcards)

    logger.info(f"Reviewed generation {generation_id}: saved all {len(flashcards)} flashcards")
    return ReviewResult(saved_count=len(flashcards), unedited_count=len(flashcards))
