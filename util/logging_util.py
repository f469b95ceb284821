import logging
import sys

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MESSAGE_PREVIEW_CHARS = 100
BODY_PREVIEW_CHARS = 500


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.

    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        # Formatter
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

    return logger


def _preview(text: str, limit: int) -> str:
    text = text or ""
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


def log_completion_request(logger: logging.Logger, body: dict):
    """
    Logs the shape of an outbound completion request.

    The request body never contains the credential (it travels in a header),
    so everything logged here is safe to keep.

    Args:
        logger: Logger instance to use
        body: The JSON body about to be posted
    """
    logger.info(f"Completion Request - Model: {body.get('model')}")
    logger.debug(f"  Temperature: {body.get('temperature')}")
    logger.debug(f"  Max tokens: {body.get('max_tokens')}")
    logger.debug(f"  Structured output: {'response_format' in body}")
    for message in body.get("messages", []):
        logger.debug(
            f"  {message.get('role')} message: "
            f"{_preview(message.get('content'), MESSAGE_PREVIEW_CHARS)}"
        )


def log_completion_response(logger: logging.Logger, status_code: int,
                            body_text: str, duration_ms: float = None):
    """
    Logs an inbound completion response.

    Args:
        logger: Logger instance to use
        status_code: HTTP status returned by the provider
        body_text: Raw response body
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms is not None else ""
    logger.info(f"Completion Response{duration_str} - Status: {status_code}")
    logger.debug(f"  Body: {_preview(body_text, BODY_PREVIEW_CHARS)}")
