"""
Data models for the flashcard generation system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class FlashcardSource(Enum):
    MANUAL = "manual"
    AI_FULL = "ai_full"
    AI_EDITED = "ai_edited"


AI_SOURCES = (FlashcardSource.AI_FULL, FlashcardSource.AI_EDITED)


@dataclass(frozen=True)
class Candidate:
    """A provisional flashcard produced by the model, not yet persisted."""
    front: str
    back: str

    def to_dict(self) -> dict:
        return {"front": self.front, "back": self.back}


@dataclass
class GenerationMetadata:
    model: str
    duration_ms: int
    count: int


@dataclass
class GenerationResult:
    """Output of one generator call: vetted candidates plus call metadata."""
    candidates: List[Candidate]
    metadata: GenerationMetadata


@dataclass
class User:
    email: str
    id: Optional[int] = None
    created_at: int = 0


@dataclass
class Generation:
    """A single generation request and its review state."""
    user_id: int
    source_text: str
    model: Optional[str] = None
    generation_duration: Optional[int] = None
    generated_count: int = 0
    generated_flashcards: List[Candidate] = field(default_factory=list)
    reviewed: bool = False
    accepted_unedited_count: Optional[int] = None
    accepted_edited_count: Optional[int] = None
    id: Optional[int] = None
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Flashcard:
    user_id: int
    front: str
    back: str
    source: FlashcardSource
    generation_id: Optional[int] = None
    id: Optional[int] = None
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Selection:
    """The reviewer's decision for one candidate, possibly with edits."""
    selected: bool
    front: str
    back: str

    @classmethod
    def from_dict(cls, data: dict) -> "Selection":
        """Build from form-style input, where ``selected`` may be "1"/"true"/"on"."""
        selected = data.get("selected", False)
        if isinstance(selected, str):
            selected = selected.strip().lower() in ("1", "true", "on", "yes")
        return cls(
            selected=bool(selected),
            front=data.get("front") or "",
            back=data.get("back") or "",
        )


@dataclass
class ReviewResult:
    saved_count: int
    unedited_count: int = 0
    edited_count: int = 0
