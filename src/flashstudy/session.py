"""Study session state and its transitions.

A Session is an immutable value. Every transition takes a session and returns
a new one, so a UI can hold the current value and swap it on each event.

    unselected --start_session--> in_progress --record_result--> complete
                                       ^   |
                                       +---+  (more cards remain)

present_card restarts the current card's elapsed time without moving it.

reset_session returns to unselected from any status.
"""
import math
import random
import uuid
from dataclasses import dataclass, replace
from typing import Optional

from flashstudy.errors import EmptyDeckError, SessionStateError
from flashstudy.models import STUDY_MODES, Deck, SessionResult

UNSELECTED = "unselected"
IN_PROGRESS = "in_progress"
COMPLETE = "complete"


@dataclass(frozen=True)
class Session:
    deck: Deck
    cards: tuple
    session_id: str
    mode: Optional[str] = None
    cursor: int = 0
    results: tuple = ()
    started_at: Optional[float] = None
    card_started_at: Optional[float] = None

    @property
    def status(self) -> str:
        if self.mode is None:
            return UNSELECTED
        if self.cursor >= len(self.cards):
            return COMPLETE
        return IN_PROGRESS

    @property
    def current_card(self):
        if self.status != IN_PROGRESS:
            return None
        return self.cards[self.cursor]


def shuffle_cards(cards, rng: random.Random | None = None) -> tuple:
    """Return the cards in a new uniformly random order."""
    shuffled = list(cards)
    (rng or random).shuffle(shuffled)
    return tuple(shuffled)


def new_session(deck: Deck, rng: random.Random | None = None) -> Session:
    return Session(
        deck=deck,
        cards=shuffle_cards(deck.cards, rng),
        session_id=uuid.uuid4().hex,
    )


def start_session(session: Session, mode: str, now: float) -> Session:
    if session.status != UNSELECTED:
        raise SessionStateError(f"Cannot start a session that is {session.status}")
    if mode not in STUDY_MODES:
        raise ValueError(f"Unknown study mode: {mode!r}")
    if not session.cards:
        raise EmptyDeckError(f"Deck {session.deck.title!r} has no cards to study")
    return replace(
        session,
        mode=mode,
        cursor=0,
        results=(),
        started_at=now,
        card_started_at=now,
    )


def present_card(session: Session, now: float) -> Session:
    """Restart the current card's elapsed time when it is actually shown."""
    if session.status != IN_PROGRESS:
        raise SessionStateError(f"Cannot present a card on a session that is {session.status}")
    return replace(session, card_started_at=now)


def record_result(session: Session, rating: int, is_correct: bool, now: float) -> Session:
    """Append the result for the current card and advance the cursor."""
    if session.status != IN_PROGRESS:
        raise SessionStateError(f"Cannot record a result on a session that is {session.status}")
    if not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValueError(f"Rating must be an integer from 1 to 5, got {rating!r}")
    elapsed = max(0, math.floor(now - session.card_started_at))
    result = SessionResult(
        flashcard_id=session.cards[session.cursor].id,
        difficulty_rating=rating,
        time_spent_seconds=elapsed,
        is_correct=bool(is_correct),
    )
    cursor = session.cursor + 1
    finished = cursor == len(session.cards)
    return replace(
        session,
        cursor=cursor,
        results=session.results + (result,),
        card_started_at=session.card_started_at if finished else now,
    )


def reset_session(session: Session, rng: random.Random | None = None) -> Session:
    """Discard the session and return a fresh, reshuffled one for the same deck."""
    return new_session(session.deck, rng)
