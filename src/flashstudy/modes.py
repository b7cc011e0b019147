"""Study mode strategies.

Each mode turns one card into exactly one ``(rating, is_correct)`` pair,
delivered through the ``on_result`` callback handed to ``begin``. A mode
returns a round object that the UI drives (reveal/rate, select/submit); once
a round has produced its result it ignores further input.

Rounds are created idle. ``present()`` marks the card as on screen; a quiz
round's countdown runs from that moment, not from when the round was built.
"""
import logging
import math
import random
import threading

from flashstudy.clock import SessionClock
from flashstudy.errors import SessionStateError

logger = logging.getLogger(__name__)

QUIZ_TIME_LIMIT = 30
QUIZ_BONUS_THRESHOLD = 20
QUIZ_DISTRACTORS = 3

MODE_LABELS = {
    "flashcard": "Flashcard Review",
    "quiz": "Quiz Mode",
    "adaptive": "Adaptive Study",
}

_MINUTES_PER_CARD = {"flashcard": 0.5, "quiz": 0.75, "adaptive": 1.0}


def estimate_minutes(mode: str, card_count: int) -> int:
    return math.ceil(card_count * _MINUTES_PER_CARD[mode])


def flashcard_is_correct(rating: int) -> bool:
    return rating >= 4


def quiz_rating(is_correct: bool, seconds_left: int) -> int:
    if not is_correct:
        return 2
    return 5 if seconds_left > QUIZ_BONUS_THRESHOLD else 4


def build_quiz_options(card, pool, rng: random.Random | None = None) -> list[str]:
    """Correct answer plus up to three distractors from the other cards, shuffled.

    With fewer than three other cards every available distractor is used, so a
    one-card deck yields a single option.
    """
    rng = rng or random
    others = [c.back_text for c in pool if c.id != card.id]
    distractors = rng.sample(others, min(QUIZ_DISTRACTORS, len(others)))
    options = [card.back_text] + distractors
    rng.shuffle(options)
    return options


class FlashcardRound:
    def __init__(self, card, on_result, adaptive: bool = False):
        self.card = card
        self.adaptive = adaptive
        self.revealed = False
        self.presented = False
        self.settled = False
        self._on_result = on_result

    def present(self) -> None:
        self.presented = True

    def reveal(self) -> None:
        self.revealed = True

    def rate(self, rating: int) -> bool:
        """Report a 1-5 confidence rating. Returns False if already rated."""
        if self.settled:
            return False
        if not self.revealed:
            raise SessionStateError("Reveal the answer before rating the card")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValueError(f"Rating must be an integer from 1 to 5, got {rating!r}")
        self.settled = True
        self._on_result(rating, flashcard_is_correct(rating))
        return True

    def cancel(self) -> None:
        self.settled = True


class QuizRound:
    def __init__(
        self,
        card,
        options: list[str],
        on_result,
        clock: SessionClock,
        timer_factory=threading.Timer,
        time_limit: int = QUIZ_TIME_LIMIT,
    ):
        self.card = card
        self.options = options
        self.time_limit = time_limit
        self.presented = False
        self.settled = False
        self.timed_out = False
        self.selected = None
        self.is_correct = None
        self._on_result = on_result
        self._clock = clock
        self._lock = threading.Lock()
        self._started_at = None
        self._timer = timer_factory(time_limit, self.expire)
        self._timer.daemon = True

    @property
    def correct_answer(self) -> str:
        return self.card.back_text

    def present(self) -> None:
        """Start the countdown. Later calls are no-ops."""
        with self._lock:
            if self.presented or self.settled:
                return
            self.presented = True
            self._started_at = self._clock.now()
            self._timer.start()

    def seconds_left(self) -> int:
        if self._started_at is None:
            return self.time_limit
        return max(0, self.time_limit - self._clock.elapsed_seconds(self._started_at))

    def select(self, answer: str) -> None:
        if not self.settled:
            self.selected = answer

    def submit(self, answer: str | None = None) -> bool:
        """Submit the selected answer. Returns False if the round already ended."""
        if self.settled:
            return False
        if answer is not None:
            self.select(answer)
        if self.selected is None:
            raise ValueError("No answer selected")
        with self._lock:
            if self.settled:
                return False
            self.settled = True
            self._timer.cancel()
        self.is_correct = self.selected == self.correct_answer
        self._on_result(quiz_rating(self.is_correct, self.seconds_left()), self.is_correct)
        return True

    def expire(self) -> bool:
        """Countdown callback: force a failed result unless already answered."""
        with self._lock:
            if self.settled or not self.presented:
                return False
            self.settled = True
            self.timed_out = True
        logger.debug("Quiz countdown expired for card %s", self.card.id)
        self.is_correct = False
        self._on_result(1, False)
        return True

    def cancel(self) -> None:
        """End the round without a result and stop the countdown."""
        with self._lock:
            self.settled = True
            self._timer.cancel()


class FlashcardMode:
    name = "flashcard"
    adaptive = False

    def begin(self, card, pool, on_result) -> FlashcardRound:
        return FlashcardRound(card, on_result, adaptive=self.adaptive)


class AdaptiveMode(FlashcardMode):
    # Self-rated and untimed, the same as flashcard review.
    name = "adaptive"
    adaptive = True


class QuizMode:
    name = "quiz"
    adaptive = False

    def __init__(self, clock: SessionClock | None = None, rng: random.Random | None = None,
                 timer_factory=threading.Timer):
        self.clock = clock or SessionClock()
        self.rng = rng
        self.timer_factory = timer_factory

    def begin(self, card, pool, on_result) -> QuizRound:
        options = build_quiz_options(card, pool, self.rng)
        return QuizRound(card, options, on_result, self.clock, self.timer_factory)


def get_mode(name: str, clock: SessionClock | None = None, rng: random.Random | None = None,
             timer_factory=threading.Timer):
    if name == "flashcard":
        return FlashcardMode()
    if name == "adaptive":
        return AdaptiveMode()
    if name == "quiz":
        return QuizMode(clock=clock, rng=rng, timer_factory=timer_factory)
    raise ValueError(f"Unknown study mode: {name!r}")
