"""
Configuration for the completion client.

Values come from the ``openrouter`` section of a YAML settings file, with the
environment as a fallback for the model and the credential. The resulting
CompletionConfig is loaded once and handed to the client's constructor.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

import yaml

from util.constants import CONFIG_PATH
from util.logging_util import setup_logger

logger = setup_logger(__name__)

DEFAULT_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_CONNECT_TIMEOUT = 5
DEFAULT_READ_TIMEOUT = 60
DEFAULT_APP_TITLE = "Flashcards App"
DEFAULT_REFERER = "https://flashcards.app"

API_KEY_ENV_VAR = "OPENROUTER_API_KEY"
MODEL_ENV_VAR = "OPENROUTER_MODEL"


@dataclass(frozen=True)
class CompletionConfig:
    """Static settings shared by every completion request."""
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    endpoint: str = DEFAULT_ENDPOINT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    app_title: str = DEFAULT_APP_TITLE
    referer: str = DEFAULT_REFERER
    verify_ssl: bool = True

    def with_overrides(self, **overrides) -> "CompletionConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _read_settings_file(config_path: Path) -> dict:
    if not config_path.exists():
        logger.debug(f"No settings file at {config_path}, using defaults")
        return {}

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    return data.get("openrouter") or {}


def _as_bool(value, name: str) -> bool:
    """Read a YAML flag that may have been written quoted, e.g. "false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "on", "1"):
            return True
        if text in ("false", "no", "off", "0"):
            return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def load_completion_config(
    config_path: Path = CONFIG_PATH,
    environ: Mapping[str, str] = None,
    **overrides,
) -> CompletionConfig:
    """
    Load the completion settings.

    Args:
        config_path: YAML file with an ``openrouter`` section.
        environ: Environment to fall back on. Defaults to os.environ.
        overrides: Explicit values that win over the file and the environment.

    Returns:
        A CompletionConfig. Missing model/credential are left as None; the
        client constructor is the one that rejects them.
    """
    if environ is None:
        environ = os.environ

    settings = _read_settings_file(config_path)

    config = CompletionConfig(
        model=settings.get("model") or environ.get(MODEL_ENV_VAR),
        api_key=settings.get("api_key") or environ.get(API_KEY_ENV_VAR),
        temperature=float(settings.get("temperature", DEFAULT_TEMPERATURE)),
        max_tokens=int(settings.get("max_tokens", DEFAULT_MAX_TOKENS)),
        endpoint=settings.get("endpoint", DEFAULT_ENDPOINT),
        connect_timeout=float(settings.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
        read_timeout=float(settings.get("read_timeout", DEFAULT_READ_TIMEOUT)),
        app_title=settings.get("app_title", DEFAULT_APP_TITLE),
        referer=settings.get("referer", DEFAULT_REFERER),
        verify_ssl=_as_bool(settings.get("verify_ssl", True), "verify_ssl"),
    )
    return config.with_overrides(**overrides)
