"""
Errors raised by the generation lifecycle, and the mapping a caller uses to
turn any generation failure into a user-facing response.
"""

from dataclasses import dataclass

from llm.errors import CompletionError, ErrorKind
from util.logging_util import setup_logger

logger = setup_logger(__name__)


class GenerationNotFoundError(LookupError):
    """No generation with that id is owned by the user."""


class AlreadyReviewedError(Exception):
    """The generation has already left the draft state."""


class EmptySelectionError(ValueError):
    """A review was submitted without any selected candidate."""


class InvalidSourceTextError(ValueError):
    """Source text is outside the accepted length bounds."""


class InvalidFlashcardError(ValueError):
    """Flashcard fields violate the flashcard invariants."""


@dataclass
class ErrorResponse:
    status: int
    message: str


GENERIC_FAILURE = "Failed to generate flashcards. Please try again."

COMPLETION_ERROR_RESPONSES = {
    ErrorKind.RATE_LIMIT: ErrorResponse(
        429, "Too many requests to the AI service. Please try again later."
    ),
    ErrorKind.INSUFFICIENT_CREDITS: ErrorResponse(
        503, "The AI service is currently unavailable. Please try again later."
    ),
    ErrorKind.AUTHENTICATION: ErrorResponse(
        503, "The AI service is currently unavailable. Please try again later."
    ),
    ErrorKind.NETWORK: ErrorResponse(
        504, "Could not reach the AI service. Please check your connection and try again."
    ),
}


def classify_generation_error(error: Exception) -> ErrorResponse:
    """
    Choose the user-facing status and message for a failed generation request.

    Authentication failures point at a misconfigured deployment rather than
    anything the user did, so they are also logged here.
    """
    if isinstance(error, CompletionError):
        if error.kind is ErrorKind.AUTHENTICATION:
            logger.error(f"Completion provider rejected our credentials: {error.message}")
        response = COMPLETION_ERROR_RESPONSES.get(error.kind)
        if response is not None:
            return response
        logger.error(f"Flashcard generation failed ({error.kind.name}): {error.message}")
        return ErrorResponse(500, GENERIC_FAILURE)

    if isinstance(error, AlreadyReviewedError):
        return ErrorResponse(409, "This generation has already been reviewed.")
    if isinstance(error, GenerationNotFoundError):
        return ErrorResponse(404, "Generation not found.")
    if isinstance(error, EmptySelectionError):
        return ErrorResponse(422, "Select at least one flashcard to save.")
    if isinstance(error, ValueError):
        return ErrorResponse(422, str(error))

    logger.error(f"Unexpected error during flashcard generation: {error}")
    return ErrorResponse(500, GENERIC_FAILURE)
