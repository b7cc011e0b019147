"""Study session controller: sequences cards through a study mode."""
import logging
import random
import threading

from flashstudy import results as aggregator
from flashstudy import session as transitions
from flashstudy.clock import SessionClock
from flashstudy.errors import SessionStateError
from flashstudy.modes import get_mode

logger = logging.getLogger(__name__)


class StudySession:
    """Owns one study run over a deck.

    UI handlers call ``start``, call ``present_current`` when a card goes on
    screen, drive ``current_round`` (reveal/rate or select/submit) and read
    ``summary`` once ``status`` is complete. Results
    are persisted to ``db_path`` for ``user_id`` when both are set.
    """

    def __init__(
        self,
        deck,
        user_id: str | None = None,
        db_path: str | None = None,
        clock: SessionClock | None = None,
        rng: random.Random | None = None,
        timer_factory=threading.Timer,
    ):
        self.deck = deck
        self.user_id = user_id
        self.db_path = db_path
        self.clock = clock or SessionClock()
        self.rng = rng
        self.timer_factory = timer_factory
        self.summary = None
        self.saved = None
        self.current_round = None
        self._mode = None
        self._exited = False
        self._lock = threading.RLock()
        self.state = transitions.new_session(deck, rng)

    @property
    def status(self) -> str:
        return self.state.status

    @property
    def mode(self) -> str | None:
        return self.state.mode

    @property
    def cards(self) -> tuple:
        return self.state.cards

    @property
    def results(self) -> tuple:
        return self.state.results

    @property
    def current_card(self):
        return self.state.current_card

    @property
    def progress(self) -> tuple[int, int]:
        return self.state.cursor, len(self.state.cards)

    @property
    def session_elapsed_seconds(self) -> int:
        return self.clock.elapsed_seconds(self.state.started_at)

    def start(self, mode: str):
        """Select a mode and begin the first card. Returns the first round."""
        with self._lock:
            if self._exited:
                raise SessionStateError("Session has been exited")
            self.state = transitions.start_session(self.state, mode, self.clock.now())
            self._mode = get_mode(mode, clock=self.clock, rng=self.rng,
                                  timer_factory=self.timer_factory)
            logger.info("Started %s session on deck %s (%d cards)",
                        mode, self.deck.id, len(self.state.cards))
            self._begin_round()
            return self.current_round

    def record_result(self, rating: int, is_correct: bool):
        """Record the current card's result. Returns the session summary when complete."""
        with self._lock:
            self.state = transitions.record_result(
                self.state, rating, is_correct, self.clock.now()
            )
            self._cancel_round()
            if self.state.status == transitions.COMPLETE:
                self._complete()
                return self.summary
            self._begin_round()
            return None

    def present_current(self):
        """Mark the current card as shown and return its round.

        The card's elapsed time and any quiz countdown start here. A round that
        was already presented is returned unchanged.
        """
        with self._lock:
            round_ = self.current_round
            if round_ is None or round_.presented:
                return round_
            self.state = transitions.present_card(self.state, self.clock.now())
            round_.present()
            return round_

    def reset(self) -> None:
        """Discard progress and reshuffle; the session returns to mode selection."""
        with self._lock:
            self._cancel_round()
            self._mode = None
            self.summary = None
            self.saved = None
            self.state = transitions.reset_session(self.state, self.rng)

    def exit(self) -> None:
        """Abandon the session. Pending countdowns are cancelled and late results ignored."""
        with self._lock:
            self._cancel_round()
            self._exited = True

    def _begin_round(self) -> None:
        card = self.state.current_card
        box = {}

        def on_result(rating, is_correct):
            self._on_round_result(box["round"], rating, is_correct)

        box["round"] = self._mode.begin(card, self.state.cards, on_result)
        self.current_round = box["round"]

    def _on_round_result(self, round_, rating, is_correct) -> None:
        with self._lock:
            if self._exited or round_ is not self.current_round:
                logger.debug("Ignoring result from a stale round")
                return
            self.record_result(rating, is_correct)

    def _cancel_round(self) -> None:
        if self.current_round is not None:
            self.current_round.cancel()
            self.current_round = None

    def _complete(self) -> None:
        self.summary = aggregator.summarize(list(self.state.results))
        logger.info("Session %s complete: %d%% accuracy over %d cards",
                    self.state.session_id, self.summary.accuracy, self.summary.total_cards)
        if self.db_path and self.user_id:
            self.saved = aggregator.persist_results(
                self.db_path, self.user_id, self.deck.id,
                list(self.state.results), session_id=self.state.session_id,
            )
