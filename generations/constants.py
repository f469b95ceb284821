"""
Constants for the flashcard generation system.
"""

from pathlib import Path

MODULE_ROOT = Path(__file__).parent

DB_NAME = "flashcards.db"

# Source text accepted for a generation request (characters)
SOURCE_TEXT_MIN_LENGTH = 1000
SOURCE_TEXT_MAX_LENGTH = 10_000

# Flashcard field limits (characters)
FRONT_MAX_LENGTH = 200
BACK_MAX_LENGTH = 500

# Model must support structured output
DEFAULT_MODEL = "openai/gpt-4o-mini"

GENERATION_MAX_TOKENS = 3000
