"""Data classes for decks, cards and study session results."""
from dataclasses import dataclass
from typing import Optional

STUDY_MODES = ("flashcard", "quiz", "adaptive")


@dataclass(frozen=True)
class Card:
    id: int
    deck_id: int
    front_text: str
    back_text: str
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    difficulty_level: int = 1


@dataclass(frozen=True)
class Deck:
    id: int
    title: str
    user_id: str
    description: Optional[str] = None
    subject: Optional[str] = None
    is_public: bool = False
    cards: tuple = ()


@dataclass(frozen=True)
class SessionResult:
    flashcard_id: int
    difficulty_rating: int
    time_spent_seconds: int
    is_correct: bool


@dataclass(frozen=True)
class SessionSummary:
    total_cards: int
    correct_count: int
    accuracy: int
    average_seconds: int
    average_rating: float
    total_seconds: int
