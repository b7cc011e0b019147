"""Tests for the study session controller."""
import random
from unittest.mock import patch

import pytest

from conftest import make_deck
from flashstudy.controller import StudySession
from flashstudy.db import init_db, get_connection
from flashstudy.decks import add_card, create_deck, load_deck
from flashstudy.errors import EmptyDeckError, SessionStateError
from flashstudy.models import Deck
from flashstudy.modes import FlashcardRound, QuizRound
from flashstudy.results import summarize
from flashstudy.session import COMPLETE, IN_PROGRESS, UNSELECTED


def _session(n, clock, fake_timer, **kwargs):
    return StudySession(make_deck(n), clock=clock, rng=random.Random(4),
                        timer_factory=fake_timer, **kwargs)


def _rate(session, rating):
    round_ = session.current_round
    round_.reveal()
    round_.rate(rating)


def test_start_returns_first_round(clock, fake_timer):
    session = _session(3, clock, fake_timer)
    assert session.status == UNSELECTED
    round_ = session.start("flashcard")
    assert isinstance(round_, FlashcardRound)
    assert round_.card == session.cards[0]
    assert session.status == IN_PROGRESS
    assert session.progress == (0, 3)


def test_start_empty_deck(clock, fake_timer):
    session = StudySession(Deck(id=1, title="Empty", user_id="alice"), clock=clock)
    with pytest.raises(EmptyDeckError):
        session.start("flashcard")
    assert session.status == UNSELECTED


def test_start_while_in_progress_is_rejected(clock, fake_timer):
    session = _session(2, clock, fake_timer)
    session.start("flashcard")
    with pytest.raises(SessionStateError):
        session.start("quiz")


def test_record_result_while_unselected_is_rejected(clock, fake_timer):
    session = _session(2, clock, fake_timer)
    with pytest.raises(SessionStateError):
        session.record_result(4, True)


def test_flashcard_end_to_end_summary(clock, fake_time, fake_timer):
    session = _session(3, clock, fake_timer)
    session.start("flashcard")
    for rating, seconds in ((5, 3), (2, 6), (4, 4)):
        fake_time.advance(seconds)
        _rate(session, rating)
    assert session.status == COMPLETE
    assert session.current_round is None
    summary = session.summary
    assert summary.total_cards == 3
    assert summary.correct_count == 2
    assert summary.accuracy == 67
    assert summary.average_rating == 3.7
    assert [r.time_spent_seconds for r in session.results] == [3, 6, 4]
    assert session.session_elapsed_seconds == 13


def test_log_length_matches_cursor(clock, fake_timer):
    session = _session(4, clock, fake_timer)
    session.start("adaptive")
    for expected in range(1, 5):
        _rate(session, 3)
        cursor, _ = session.progress
        assert cursor == expected
        assert len(session.results) == cursor


def test_summarize_called_once_at_completion(clock, fake_timer):
    session = _session(3, clock, fake_timer)
    with patch("flashstudy.controller.aggregator.summarize", wraps=summarize) as spy:
        session.start("flashcard")
        _rate(session, 4)
        _rate(session, 4)
        assert spy.call_count == 0
        _rate(session, 4)
        assert spy.call_count == 1


def test_record_result_after_complete_is_rejected(clock, fake_timer):
    session = _session(1, clock, fake_timer)
    session.start("flashcard")
    _rate(session, 5)
    with pytest.raises(SessionStateError):
        session.record_result(5, True)


def test_quiz_session_scores_and_cancels_timers(clock, fake_time, fake_timer):
    session = _session(3, clock, fake_timer)
    session.start("quiz")
    first = session.present_current()
    assert isinstance(first, QuizRound)
    first.submit(first.correct_answer)
    assert fake_timer.instances[0].cancelled
    second = session.present_current()
    wrong = next(o for o in second.options if o != second.correct_answer)
    fake_time.advance(12)
    second.submit(wrong)
    session.present_current()
    fake_timer.instances[2].fire()  # third card times out
    assert session.status == COMPLETE
    assert [(r.difficulty_rating, r.is_correct) for r in session.results] == [
        (5, True), (2, False), (1, False),
    ]


def test_quiz_late_submission_after_timeout_adds_nothing(clock, fake_timer):
    session = _session(2, clock, fake_timer)
    session.start("quiz")
    first = session.present_current()
    fake_timer.instances[0].fire()
    assert len(session.results) == 1
    assert first.submit(first.correct_answer) is False
    assert len(session.results) == 1
    assert session.results[0].difficulty_rating == 1
    assert session.current_round is not first


def test_timeout_does_not_arm_next_card_until_presented(clock, fake_time, fake_timer):
    session = _session(3, clock, fake_timer)
    session.start("quiz")
    session.present_current()
    fake_time.advance(30)
    fake_timer.instances[0].fire()
    nxt = session.current_round
    assert not fake_timer.instances[1].started
    fake_time.advance(40)  # the old card is still on screen
    fake_timer.instances[1].fire()
    assert len(session.results) == 1
    assert session.present_current() is nxt
    assert fake_timer.instances[1].started
    fake_time.advance(4)
    nxt.submit(nxt.correct_answer)
    assert [(r.difficulty_rating, r.time_spent_seconds) for r in session.results] == [(1, 30), (5, 4)]


def test_present_current_restarts_card_time(clock, fake_time, fake_timer):
    session = _session(2, clock, fake_timer)
    session.start("flashcard")
    fake_time.advance(50)
    round_ = session.present_current()
    fake_time.advance(7)
    round_.reveal()
    round_.rate(4)
    assert session.results[0].time_spent_seconds == 7


def test_present_current_when_complete_returns_none(clock, fake_timer):
    session = _session(1, clock, fake_timer)
    session.start("flashcard")
    _rate(session, 5)
    assert session.present_current() is None


def test_quiz_single_card_deck(clock, fake_timer):
    session = _session(1, clock, fake_timer)
    round_ = session.start("quiz")
    assert round_.options == [session.cards[0].back_text]


def test_exit_cancels_pending_countdown(clock, fake_timer):
    session = _session(2, clock, fake_timer)
    session.start("quiz")
    round_ = session.current_round
    session.exit()
    assert fake_timer.instances[0].cancelled
    round_.expire()
    assert session.results == ()
    with pytest.raises(SessionStateError):
        session.start("quiz")


def test_stale_round_result_is_ignored(clock, fake_timer):
    session = _session(2, clock, fake_timer)
    session.start("flashcard")
    stale = session.current_round
    session.reset()
    session.start("flashcard")
    stale.settled = False  # simulate a late callback from the discarded round
    stale.reveal()
    stale.rate(5)
    assert session.results == ()


def test_reset_from_in_progress(clock, fake_timer):
    session = _session(5, clock, fake_timer)
    session.start("quiz")
    session.current_round.submit(session.current_round.correct_answer)
    old_results = session.results
    session.reset()
    assert fake_timer.instances[1].cancelled
    assert session.status == UNSELECTED
    assert session.results == ()
    assert session.progress == (0, 5)
    assert session.current_round is None
    assert len(old_results) == 1
    assert sorted(c.id for c in session.cards) == [1, 2, 3, 4, 5]


def test_reset_from_complete_allows_new_run(clock, fake_timer):
    session = _session(1, clock, fake_timer)
    session.start("flashcard")
    _rate(session, 5)
    session.reset()
    assert session.summary is None
    session.start("quiz")
    assert session.status == IN_PROGRESS


def test_completion_persists_results(tmp_db, clock, fake_timer):
    init_db(tmp_db)
    deck_id = create_deck(tmp_db, "alice", "Chemistry")
    for i in range(3):
        add_card(tmp_db, deck_id, f"Q{i}", f"A{i}")
    deck = load_deck(tmp_db, deck_id)
    session = StudySession(deck, user_id="alice", db_path=tmp_db, clock=clock, timer_factory=fake_timer)
    session.start("flashcard")
    for rating in (5, 2, 4):
        _rate(session, rating)
    assert session.saved is True
    conn = get_connection(tmp_db)
    rows = conn.execute("SELECT * FROM study_sessions").fetchall()
    conn.close()
    assert len(rows) == 3
    assert {r["session_id"] for r in rows} == {session.state.session_id}
    assert sum(r["is_correct"] for r in rows) == 2


def test_persistence_failure_still_produces_summary(tmp_db, clock, fake_timer):
    # Database never initialised: the insert fails.
    session = _session(2, clock, fake_timer, user_id="alice", db_path=tmp_db)
    session.start("flashcard")
    _rate(session, 4)
    _rate(session, 1)
    assert session.saved is False
    assert session.summary.accuracy == 50


def test_no_persistence_without_user(tmp_db, clock, fake_timer):
    session = _session(1, clock, fake_timer, db_path=tmp_db)
    session.start("flashcard")
    _rate(session, 4)
    assert session.saved is None
