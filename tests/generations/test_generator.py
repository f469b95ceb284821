"""Tests for flashcard candidate generation."""

from unittest.mock import MagicMock, patch

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from generations.constants import DEFAULT_MODEL, GENERATION_MAX_TOKENS
from generations.generator import (
    RESPONSE_FORMAT,
    SYSTEM_PROMPT,
    FlashcardGenerator,
    make_flashcard_generator,
    validate_and_extract_flashcards,
)
from generations.models import Candidate
from llm.config import CompletionConfig
from llm.errors import CompletionError, ErrorKind

SOURCE_TEXT = "Photosynthesis converts light energy into chemical energy. " * 20


def make_client(response=None, model="openai/gpt-4o-mini"):
    """Create a mock completion client returning the given reply."""
    client = MagicMock()
    client.model = model
    client.complete.return_value = response
    return client


def reply(*cards):
    return {"flashcards": [{"question": q, "answer": a} for q, a in cards]}


class TestGenerate:
    """Tests for FlashcardGenerator.generate."""

    def test_returns_candidates_and_metadata(self):
        """Test a successful generation."""
        client = make_client(reply(
            ("What is photosynthesis?", "Conversion of light into chemical energy"),
            ("Where does it happen?", "In chloroplasts"),
        ))

        result = FlashcardGenerator(client).generate(SOURCE_TEXT)

        assert result.candidates == [
            Candidate("What is photosynthesis?", "Conversion of light into chemical energy"),
            Candidate("Where does it happen?", "In chloroplasts"),
        ]
        assert result.metadata.model == "openai/gpt-4o-mini"
        assert result.metadata.count == 2
        assert result.metadata.duration_ms >= 0

    def test_request_uses_prompt_and_schema(self):
        """Test that the client gets the system prompt, source text and schema."""
        client = make_client(reply(("Q", "A")))

        FlashcardGenerator(client).generate(SOURCE_TEXT)

        kwargs = client.complete.call_args.kwargs
        assert kwargs["system_message"] == SYSTEM_PROMPT
        assert SOURCE_TEXT in kwargs["user_message"]
        assert kwargs["response_format"] == RESPONSE_FORMAT

    def test_duration_is_measured(self):
        """Test that the duration covers the client call."""
        client = make_client(reply(("Q", "A")))

        with patch("generations.generator.time") as mock_time:
            mock_time.time.side_effect = [100.0, 100.25]
            result = FlashcardGenerator(client).generate(SOURCE_TEXT)

        assert result.metadata.duration_ms == 250

    def test_candidates_are_trimmed(self):
        """Test that surrounding whitespace is stripped from candidates."""
        client = make_client(reply(("  What is it?\n", "\tThis  ")))

        result = FlashcardGenerator(client).generate(SOURCE_TEXT)

        assert result.candidates == [Candidate("What is it?", "This")]

    @pytest.mark.parametrize("source_text", [None, "", "   ", "\n\t"])
    def test_blank_source_makes_no_request(self, source_text):
        """Test that blank input is rejected before calling the client."""
        client = make_client()

        with pytest.raises(ValueError):
            FlashcardGenerator(client).generate(source_text)

        client.complete.assert_not_called()

    @given(st.text(alphabet=" \t\n\r", max_size=50))
    def test_whitespace_only_is_blank(self, source_text):
        """Test that any whitespace-only input is rejected."""
        client = make_client()

        with pytest.raises(ValueError):
            FlashcardGenerator(client).generate(source_text)

        client.complete.assert_not_called()

    def test_client_error_propagates_unchanged(self):
        """Test that a completion error reaches the caller as-is."""
        error = CompletionError(ErrorKind.RATE_LIMIT, "Rate limit exceeded.", 429)
        client = make_client()
        client.complete.side_effect = error

        with pytest.raises(CompletionError) as excinfo:
            FlashcardGenerator(client).generate(SOURCE_TEXT)

        assert excinfo.value is error

    def test_model_property(self):
        client = make_client(model="mistralai/mistral-small")

        assert FlashcardGenerator(client).model == "mistralai/mistral-small"


class TestValidateAndExtract:
    """Tests for validate_and_extract_flashcards."""

    @pytest.mark.parametrize(
        "response",
        [
            {},
            {"flashcards": None},
            {"flashcards": "Q: A"},
            {"flashcards": {"question": "Q", "answer": "A"}},
            ["not", "a", "dict"],
            {"content": "free text"},
        ],
    )
    def test_invalid_format(self, response):
        """Test that a missing or non-list flashcards field is rejected."""
        with pytest.raises(CompletionError) as excinfo:
            validate_and_extract_flashcards(response)

        assert excinfo.value.kind is ErrorKind.RESPONSE_PARSE
        assert excinfo.value.message == "Invalid flashcards format in response"

    def test_empty_list(self):
        """Test that an empty list is rejected."""
        with pytest.raises(CompletionError) as excinfo:
            validate_and_extract_flashcards({"flashcards": []})

        assert excinfo.value.kind is ErrorKind.RESPONSE_PARSE
        assert excinfo.value.message == "No flashcards generated"

    @pytest.mark.parametrize(
        "card",
        [
            {"question": "", "answer": "A"},
            {"question": "   ", "answer": "A"},
            {"question": "Q", "answer": ""},
            {"question": "Q", "answer": "  \n"},
            {"question": "Q"},
            {"answer": "A"},
            {"question": 42, "answer": "A"},
            "Q: A",
        ],
    )
    def test_invalid_candidate(self, card):
        """Test that blank or malformed candidates are rejected."""
        with pytest.raises(CompletionError) as excinfo:
            validate_and_extract_flashcards({"flashcards": [card]})

        assert excinfo.value.kind is ErrorKind.RESPONSE_PARSE

    def test_length_limits_are_inclusive(self):
        """Test that a 200-char question and a 500-char answer are accepted."""
        candidates = validate_and_extract_flashcards(reply(("q" * 200, "a" * 500)))

        assert candidates == [Candidate("q" * 200, "a" * 500)]

    def test_question_too_long(self):
        with pytest.raises(CompletionError, match="question too long"):
            validate_and_extract_flashcards(reply(("q" * 201, "A")))

    def test_answer_too_long(self):
        with pytest.raises(CompletionError, match="answer too long"):
            validate_and_extract_flashcards(reply(("Q", "a" * 501)))

    def test_one_invalid_candidate_fails_all(self):
        """Test that a single bad candidate rejects the whole reply."""
        response = reply(("Q1", "A1"), ("Q2", ""), ("Q3", "A3"))

        with pytest.raises(CompletionError):
            validate_and_extract_flashcards(response)

    @given(st.integers(min_value=1, max_value=400))
    @settings(max_examples=50)
    def test_question_length_boundary(self, length):
        """Test that questions are accepted exactly up to 200 characters."""
        response = reply(("x" * length, "answer"))

        if length <= 200:
            assert len(validate_and_extract_flashcards(response)) == 1
        else:
            with pytest.raises(CompletionError):
                validate_and_extract_flashcards(response)


class TestMakeFlashcardGenerator:
    """Tests for make_flashcard_generator."""

    def test_default_model(self):
        """Test that the default model is used when none is configured."""
        generator = make_flashcard_generator(CompletionConfig(api_key="key"))

        assert generator.model == DEFAULT_MODEL
        assert generator.client.max_tokens == GENERATION_MAX_TOKENS

    def test_configured_model(self):
        """Test that a configured model is kept."""
        generator = make_flashcard_generator(
            CompletionConfig(api_key="key", model="mistralai/mistral-small", max_tokens=500)
        )

        assert generator.model == "mistralai/mistral-small"
        assert generator.client.max_tokens == GENERATION_MAX_TOKENS

    def test_missing_credential(self):
        """Test that a missing credential is a configuration error."""
        with pytest.raises(CompletionError) as excinfo:
            make_flashcard_generator(CompletionConfig())

        assert excinfo.value.kind is ErrorKind.CONFIGURATION
