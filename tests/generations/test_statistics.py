"""Tests for acceptance statistics."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine

from generations import db_engine, statistics
from generations.models import Candidate, GenerationMetadata, GenerationResult, Selection
from generations.orm_models import Base

SOURCE_TEXT = "Plate tectonics explains the movement of the lithosphere. " * 20


@pytest.fixture
def temp_db():
    """Create a temporary in-memory database for testing."""
    test_engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(test_engine)
    db_engine.set_engine(test_engine)
    yield test_engine
    db_engine.reset_engine()


def make_draft(user_id, count):
    from generations.review import create_draft

    candidates = [Candidate(f"Question {i}?", f"Answer {i}") for i in range(count)]
    generator = MagicMock()
    generator.generate.return_value = GenerationResult(
        candidates=candidates,
        metadata=GenerationMetadata(model="test/model", duration_ms=5, count=count),
    )
    return create_draft(user_id, SOURCE_TEXT, generator)


class TestEmptyDatabase:
    """Tests for statistics with nothing stored."""

    def test_rates_are_zero(self, temp_db):
        assert statistics.system_acceptance_rate() == 0.0
        assert statistics.system_ai_share() == 0.0
        assert statistics.system_total_flashcards() == 0
        assert statistics.system_total_users() == 0

    def test_user_without_data(self, temp_db):
        from generations.database import create_user

        user = create_user("ada@example.com")

        assert statistics.user_acceptance_rate(user.id) == 0.0
        assert statistics.user_ai_share(user.id) == 0.0


class TestAcceptanceRate:
    """Tests for acceptance rates."""

    def test_user_acceptance_rate(self, temp_db):
        """Test (unedited + edited) / generated over a user's generations."""
        from generations.database import create_user
        from generations.review import review_all, review_selected

        user = create_user("ada@example.com")
        partial = make_draft(user.id, 3)
        review_selected(partial.id, {
            0: Selection(True, "Question 0?", "Answer 0"),
            1: Selection(True, "Question 1?", "A better answer"),
        })
        full = make_draft(user.id, 5)
        review_all(full.id)

        # 7 accepted out of 8 generated
        assert statistics.user_acceptance_rate(user.id) == 87.5

    def test_drafts_count_as_generated(self, temp_db):
        """Test that unreviewed candidates lower the rate."""
        from generations.database import create_user
        from generations.review import review_all

        user = create_user("ada@example.com")
        full = make_draft(user.id, 2)
        review_all(full.id)
        make_draft(user.id, 4)

        # 2 accepted out of 6 generated
        assert statistics.user_acceptance_rate(user.id) == 33.3

    def test_system_acceptance_rate(self, temp_db):
        from generations.database import create_user
        from generations.review import review_all, review_selected

        ada = create_user("ada@example.com")
        bob = create_user("bob@example.com")
        review_all(make_draft(ada.id, 2).id)
        bob_draft = make_draft(bob.id, 2)
        review_selected(bob_draft.id, {0: Selection(True, "Question 0?", "Answer 0")})

        assert statistics.user_acceptance_rate(ada.id) == 100.0
        assert statistics.user_acceptance_rate(bob.id) == 50.0
        assert statistics.system_acceptance_rate() == 75.0


class TestAiShare:
    """Tests for the share of AI-generated flashcards."""

    def test_user_ai_share(self, temp_db):
        """Test that ai_full and ai_edited both count as AI-generated."""
        from generations.database import add_manual_flashcard, create_user
        from generations.review import review_selected

        user = create_user("ada@example.com")
        draft = make_draft(user.id, 2)
        review_selected(draft.id, {
            0: Selection(True, "Question 0?", "Answer 0"),
            1: Selection(True, "Edited?", "Answer 1"),
        })
        add_manual_flashcard(user.id, "Hand written", "Card")

        assert statistics.user_ai_share(user.id) == 66.7

    def test_manual_only(self, temp_db):
        from generations.database import add_manual_flashcard, create_user

        user = create_user("ada@example.com")
        add_manual_flashcard(user.id, "Front", "Back")

        assert statistics.user_ai_share(user.id) == 0.0

    def test_system_totals(self, temp_db):
        from generations.database import add_manual_flashcard, create_user
        from generations.review import review_all

        ada = create_user("ada@example.com")
        bob = create_user("bob@example.com")
        review_all(make_draft(ada.id, 3).id)
        add_manual_flashcard(bob.id, "Front", "Back")

        assert statistics.system_ai_share() == 75.0
        assert statistics.system_total_flashcards() == 4
        assert statistics.system_total_users() == 2


class TestRounding:
    """Tests for rounding percentages to one decimal place."""

    @pytest.mark.parametrize(
        "part, total, expected",
        [
            (1, 16, 6.3),
            (1, 80, 1.3),
            (5, 16, 31.3),
            (3, 16, 18.8),
            (1, 3, 33.3),
            (2, 3, 66.7),
            (0, 7, 0.0),
            (7, 7, 100.0),
        ],
    )
    def test_halves_round_up(self, part, total, expected):
        from generations.statistics import _percentage

        assert _percentage(part, total) == expected

    def test_acceptance_rate_half_case(self, temp_db):
        """Test that 1 accepted of 16 generated reports 6.3, not 6.2."""
        from generations.database import create_user
        from generations.review import review_selected

        user = create_user("ada@example.com")
        draft = make_draft(user.id, 16)
        review_selected(draft.id, {0: Selection(True, "Question 0?", "Answer 0")})

        assert statistics.user_acceptance_rate(user.id) == 6.3
        assert statistics.system_acceptance_rate() == 6.3
