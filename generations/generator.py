"""
Turns raw source text into a vetted list of flashcard candidates.
"""

import time
from typing import List, Optional

from generations.constants import (
    BACK_MAX_LENGTH,
    DEFAULT_MODEL,
    FRONT_MAX_LENGTH,
    GENERATION_MAX_TOKENS,
)
from generations.models import Candidate, GenerationMetadata, GenerationResult
from llm.completion_client import CompletionClient
from llm.config import CompletionConfig, load_completion_config
from llm.errors import CompletionError, ErrorKind
from util.logging_util import setup_logger

logger = setup_logger(__name__)

SYSTEM_PROMPT = """\
You are an expert educational content creator specializing in flashcard generation.
Your task is to create high-quality flashcards from the provided text.

Guidelines:
- Focus on key concepts, definitions, and important facts
- Each question should be clear and unambiguous
- Answers should be concise but complete
- Include context in the question when necessary
- Avoid yes/no questions; prefer questions that require understanding
- Generate between 5 and 15 flashcards depending on content richness
- Ensure questions test understanding, not just memorization
- Questions should be self-contained (include necessary context)
- Answers should be specific and accurate
"""

USER_MESSAGE_TEMPLATE = """\
Generate educational flashcards from the following text:

{source_text}

Create flashcards that will help a student learn and retain the key information from this text.
Focus on the most important concepts and facts.
"""

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "flashcards_generation",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "flashcards": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "question": {
                                "type": "string",
                                "description": "The question on the front of the flashcard",
                            },
                            "answer": {
                                "type": "string",
                                "description": "The answer on the back of the flashcard",
                            },
                        },
                        "required": ["question", "answer"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["flashcards"],
            "additionalProperties": False,
        },
    },
}


def build_user_message(source_text: str) -> str:
    return USER_MESSAGE_TEMPLATE.format(source_text=source_text)


def _parse_error(message: str) -> CompletionError:
    return CompletionError(ErrorKind.RESPONSE_PARSE, message)


def _validate_candidate(card) -> Candidate:
    if not isinstance(card, dict):
        raise _parse_error("Flashcard must be an object with a question and an answer")

    question = card.get("question")
    answer = card.get("answer")

    if not isinstance(question, str) or not question.strip():
        raise _parse_error("Flashcard question cannot be blank")
    if not isinstance(answer, str) or not answer.strip():
        raise _parse_error("Flashcard answer cannot be blank")
    if len(question) > FRONT_MAX_LENGTH:
        raise _parse_error(f"Flashcard question too long (max {FRONT_MAX_LENGTH} characters)")
    if len(answer) > BACK_MAX_LENGTH:
        raise _parse_error(f"Flashcard answer too long (max {BACK_MAX_LENGTH} characters)")

    return Candidate(front=question.strip(), back=answer.strip())


def validate_and_extract_flashcards(response) -> List[Candidate]:
    """
    Validate a structured reply and extract its candidates.

    Fails on the first invalid candidate; nothing is returned from a reply
    that contains any invalid candidate.
    """
    flashcards = response.get("flashcards") if isinstance(response, dict) else None

    if not isinstance(flashcards, list):
        raise _parse_error("Invalid flashcards format in response")
    if not flashcards:
        raise _parse_error("No flashcards generated")

    return [_validate_candidate(card) for card in flashcards]


class FlashcardGenerator:
    """Builds the prompt, calls the completion client and vets its reply."""

    def __init__(self, client: CompletionClient):
        self.client = client

    @property
    def model(self) -> str:
        return self.client.model

    def generate(self, source_text: str) -> GenerationResult:
        """
        Generate flashcard candidates from source text.

        Raises:
            ValueError: if source_text is blank. No request is made.
            CompletionError: from the client unchanged, or RESPONSE_PARSE when
                the reply does not hold a valid, non-empty flashcard list.
        """
        if source_text is None or not source_text.strip():
            raise ValueError("Source text cannot be blank")

        start_time = time.time()
        response = self.client.complete(
            system_message=SYSTEM_PROMPT,
            user_message=build_user_message(source_text),
            response_format=RESPONSE_FORMAT,
        )
        duration_ms = int((time.time() - start_time) * 1000)

        candidates = validate_and_extract_flashcards(response)
        logger.info(
            f"Generated {len(candidates)} flashcards with {self.model} in {duration_ms}ms"
        )

        return GenerationResult(
            candidates=candidates,
            metadata=GenerationMetadata(
                model=self.model,
                duration_ms=duration_ms,
                count=len(candidates),
            ),
        )


def make_flashcard_generator(config: Optional[CompletionConfig] = None) -> FlashcardGenerator:
    """
    Create a generator from the loaded settings.

    The settings' model is used when present, otherwise DEFAULT_MODEL.
    Generation always asks for GENERATION_MAX_TOKENS.
    """
    if config is None:
        config = load_completion_config()
    if not config.model:
        config = config.with_overrides(model=DEFAULT_MODEL)
    config = config.with_overrides(max_tokens=GENERATION_MAX_TOKENS)
    return FlashcardGenerator(CompletionClient(config))
