"""
Client for an OpenAI-compatible chat completion endpoint (OpenRouter).

One call to ``complete`` is exactly one HTTP request: there is no retry,
streaming or caching. Every failure surfaces as a CompletionError.
"""

import json
import time
from typing import Optional

import requests

from llm.config import CompletionConfig
from llm.errors import CompletionError, ErrorKind, error_from_body, error_from_status
from util.logging_util import (
    setup_logger,
    log_completion_request,
    log_completion_response,
)

logger = setup_logger(__name__)


class CompletionClient:
    """Single-attempt request/response exchange with the completion endpoint."""

    def __init__(self, config: CompletionConfig):
        self.model = config.model
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens
        self.endpoint = config.endpoint
        self.timeout = (config.connect_timeout, config.read_timeout)
        self.verify_ssl = config.verify_ssl
        self._api_key = config.api_key
        self._app_title = config.app_title
        self._referer = config.referer

        self._validate_configuration()

        if not self.verify_ssl:
            logger.warning(
                "SSL verification is disabled for the completion client. "
                "This should only be used in development."
            )

    def _validate_configuration(self):
        if not self._api_key or not self._api_key.strip():
            raise CompletionError(
                ErrorKind.CONFIGURATION,
                "OpenRouter API key is missing. Provide api_key in the settings "
                "file or set OPENROUTER_API_KEY.",
            )
        if not self.model or not self.model.strip():
            raise CompletionError(ErrorKind.CONFIGURATION, "Model name is required.")

    def complete(
        self,
        system_message: str,
        user_message: str,
        response_format: Optional[dict] = None,
    ) -> dict:
        """
        Send a two-message conversation and return the reply.

        Args:
            system_message: Instructions for the model.
            user_message: The user turn.
            response_format: Optional structured-output schema. When given, the
                reply content is decoded as JSON and returned as-is.

        Returns:
            The decoded structured content, or ``{"content": text}`` for a
            free-text reply.
        """
        body = self._build_request_body(system_message, user_message, response_format)
        response = self._make_request(body)
        return self._parse_response(response, structured=bool(response_format))

    def _build_request_body(
        self, system_message: str, user_message: str, response_format: Optional[dict]
    ) -> dict:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if response_format:
            body["response_format"] = response_format
        return body

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "HTTP-Referer": self._referer,
            "X-Title": self._app_title,
        }

    def _make_request(self, body: dict) -> requests.Response:
        log_completion_request(logger, body)

        start_time = time.time()
        try:
            response = requests.post(
                self.endpoint,
                json=body,
                headers=self._headers(),
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            raise CompletionError(ErrorKind.NETWORK, f"Network timeout: {e}") from e
        except requests.exceptions.RequestException as e:
            raise CompletionError(ErrorKind.NETWORK, f"Network error: {e}") from e

        duration_ms = (time.time() - start_time) * 1000
        log_completion_response(logger, response.status_code, response.text, duration_ms)

        if 200 <= response.status_code < 300:
            return response

        raise error_from_status(response.status_code, self._extract_error_message(response))

    @staticmethod
    def _extract_error_message(response: requests.Response) -> str:
        try:
            parsed = response.json()
        except ValueError:
            return response.text
        if isinstance(parsed, dict) and isinstance(parsed.get("error"), dict):
            return parsed["error"].get("message") or "Unknown error"
        return "Unknown error"

    @staticmethod
    def _extract_content(body: dict) -> Optional[str]:
        try:
            return body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None

    def _parse_response(self, response: requests.Response, structured: bool) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            raise CompletionError(
                ErrorKind.RESPONSE_PARSE, f"Failed to parse response: {e}"
            ) from e

        if not isinstance(body, dict):
            raise CompletionError(
                ErrorKind.RESPONSE_PARSE, f"Unexpected response shape: {type(body).__name__}"
            )

        # Providers can report errors with a 2xx status
        error = body.get("error")
        if error:
            if isinstance(error, dict):
                message = error.get("message") or "Unknown error from provider"
                code = error.get("code") or "unknown"
            else:
                message, code = str(error), "unknown"
            logger.error(f"Provider error in response body: {code} - {message}")
            raise error_from_body(code, message)

        content = self._extract_content(body)
        if not isinstance(content, str) or not content.strip():
            logger.error(f"No content in response. Body: {str(body)[:500]}")
            raise CompletionError(ErrorKind.RESPONSE_PARSE, "No content in API response")

        if not structured:
            return {"content": content}

        try:
            return response_content_as_json(content)
        except ValueError as e:
            raise CompletionError(
                ErrorKind.RESPONSE_PARSE, f"Failed to parse response: {e}"
            ) from e


def response_content_as_json(content: str):
    """Decode structured reply content, tolerating a markdown code fence."""
    content = content.strip()
    if content.startswith("```"):
        lines = content.split("\n")
        content = "\n".join(lines[1:-1])
    return json.loads(content)
