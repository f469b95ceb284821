"""
Error taxonomy for the completion client.

Every failure the client or the flashcard generator can report is a
CompletionError tagged with one ErrorKind, so callers match on ``error.kind``
instead of on a hierarchy of exception classes.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    INVALID_REQUEST = "invalid_request"
    RATE_LIMIT = "rate_limit"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    SERVER = "server"
    API = "api"
    NETWORK = "network"
    RESPONSE_PARSE = "response_parse"


class CompletionError(Exception):
    """A failed completion exchange, tagged with its kind."""

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"CompletionError(kind={self.kind.name}, message={self.message!r}, "
            f"status_code={self.status_code})"
        )


# Provider error codes found inside a response body, keyed by the value of error.code
BODY_ERROR_CODES = {
    400: ErrorKind.INVALID_REQUEST,
    "invalid_request_error": ErrorKind.INVALID_REQUEST,
    401: ErrorKind.AUTHENTICATION,
    "authentication_error": ErrorKind.AUTHENTICATION,
    402: ErrorKind.INSUFFICIENT_CREDITS,
    "insufficient_credits": ErrorKind.INSUFFICIENT_CREDITS,
    429: ErrorKind.RATE_LIMIT,
    "rate_limit_error": ErrorKind.RATE_LIMIT,
}


def error_from_status(status_code: int, provider_message: str) -> CompletionError:
    """Map a non-2xx HTTP status onto the taxonomy."""
    if status_code == 400:
        return CompletionError(ErrorKind.INVALID_REQUEST, provider_message, status_code)
    if status_code == 401:
        return CompletionError(
            ErrorKind.AUTHENTICATION,
            "Invalid API key. Please check your OpenRouter credentials.",
            status_code,
        )
    if status_code == 402:
        return CompletionError(
            ErrorKind.INSUFFICIENT_CREDITS,
            "Insufficient credits. Please add funds to your OpenRouter account.",
            status_code,
        )
    if status_code == 429:
        return CompletionError(
            ErrorKind.RATE_LIMIT,
            "Rate limit exceeded. Please try again later.",
            status_code,
        )
    if 500 <= status_code <= 599:
        return CompletionError(
            ErrorKind.SERVER,
            f"OpenRouter server error ({status_code}). Please try again later.",
            status_code,
        )
    return CompletionError(
        ErrorKind.API, f"API error ({status_code}): {provider_message}", status_code
    )


def error_from_body(code, message: str) -> CompletionError:
    """Map an ``{error: {code, message}}`` body onto the taxonomy.

    Providers send the code either as an HTTP-like integer (sometimes as a
    numeric string) or as a symbolic name.
    """
    if isinstance(code, str) and code.isdigit():
        code = int(code)
    status_code = code if isinstance(code, int) else None

    kind = BODY_ERROR_CODES.get(code)
    if kind is not None:
        return CompletionError(kind, message, status_code)
    if status_code is not None and 500 <= status_code <= 599:
        return CompletionError(ErrorKind.SERVER, f"Provider error: {message}", status_code)
    return CompletionError(ErrorKind.API, f"API error ({code}): {message}", status_code)
