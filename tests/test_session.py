"""Tests for session state transitions."""
import random
from collections import Counter

import pytest

from conftest import make_deck
from flashstudy.errors import EmptyDeckError, SessionStateError
from flashstudy.models import Deck
from flashstudy.session import (
    COMPLETE, IN_PROGRESS, UNSELECTED, new_session, present_card, record_result, reset_session,
    shuffle_cards, start_session,
)


def test_new_session_is_unselected():
    session = new_session(make_deck(3))
    assert session.status == UNSELECTED
    assert session.cursor == 0
    assert session.results == ()
    assert session.current_card is None


def test_new_session_is_permutation_of_deck():
    deck = make_deck(10)
    session = new_session(deck, random.Random(1))
    assert Counter(c.id for c in session.cards) == Counter(c.id for c in deck.cards)
    assert len(session.cards) == len(deck.cards)


def test_new_session_does_not_mutate_deck():
    deck = make_deck(10)
    original = deck.cards
    new_session(deck, random.Random(3))
    assert deck.cards == original


def test_shuffle_cards_is_random():
    cards = make_deck(8).cards
    orders = {shuffle_cards(cards, random.Random(seed)) for seed in range(20)}
    assert len(orders) > 1


def test_start_session_sets_mode_and_timestamps():
    session = start_session(new_session(make_deck(2)), "flashcard", now=50.0)
    assert session.status == IN_PROGRESS
    assert session.mode == "flashcard"
    assert session.started_at == 50.0
    assert session.card_started_at == 50.0
    assert session.current_card == session.cards[0]


def test_start_session_empty_deck():
    session = new_session(Deck(id=9, title="Empty", user_id="alice"))
    with pytest.raises(EmptyDeckError):
        start_session(session, "flashcard", now=0.0)


def test_start_session_unknown_mode():
    with pytest.raises(ValueError):
        start_session(new_session(make_deck(2)), "cram", now=0.0)


def test_start_session_twice_is_rejected():
    session = start_session(new_session(make_deck(2)), "quiz", now=0.0)
    with pytest.raises(SessionStateError):
        start_session(session, "quiz", now=1.0)


def test_record_result_before_start_is_rejected():
    with pytest.raises(SessionStateError):
        record_result(new_session(make_deck(2)), 4, True, now=1.0)


def test_record_result_appends_and_advances():
    session = start_session(new_session(make_deck(3)), "flashcard", now=100.0)
    first_card = session.cards[0]
    session = record_result(session, 5, True, now=107.6)
    assert session.cursor == 1
    assert len(session.results) == 1
    result = session.results[0]
    assert result.flashcard_id == first_card.id
    assert result.difficulty_rating == 5
    assert result.time_spent_seconds == 7
    assert result.is_correct is True
    assert session.card_started_at == 107.6


def test_record_result_clamps_negative_elapsed():
    session = start_session(new_session(make_deck(2)), "flashcard", now=100.0)
    session = record_result(session, 3, False, now=90.0)
    assert session.results[0].time_spent_seconds == 0


def test_present_card_restarts_elapsed_time():
    session = start_session(new_session(make_deck(2)), "quiz", now=100.0)
    session = record_result(session, 5, True, now=110.0)
    session = present_card(session, now=150.0)
    assert session.cursor == 1
    session = record_result(session, 4, True, now=162.9)
    assert [r.time_spent_seconds for r in session.results] == [10, 12]


def test_present_card_requires_in_progress():
    with pytest.raises(SessionStateError):
        present_card(new_session(make_deck(2)), now=1.0)


def test_record_result_rejects_bad_rating():
    session = start_session(new_session(make_deck(2)), "flashcard", now=0.0)
    with pytest.raises(ValueError):
        record_result(session, 6, True, now=1.0)
    with pytest.raises(ValueError):
        record_result(session, 0, False, now=1.0)


def test_log_length_matches_cursor_throughout():
    session = start_session(new_session(make_deck(5)), "adaptive", now=0.0)
    last_cursor = session.cursor
    for i in range(5):
        session = record_result(session, 3, False, now=float(i + 1))
        assert len(session.results) == session.cursor
        assert session.cursor > last_cursor
        last_cursor = session.cursor


def test_results_follow_working_sequence_order():
    session = start_session(new_session(make_deck(4), random.Random(7)), "flashcard", now=0.0)
    for i in range(4):
        session = record_result(session, 4, True, now=float(i))
    assert [r.flashcard_id for r in session.results] == [c.id for c in session.cards]


def test_complete_only_when_cursor_reaches_end():
    session = start_session(new_session(make_deck(2)), "flashcard", now=0.0)
    session = record_result(session, 4, True, now=1.0)
    assert session.status == IN_PROGRESS
    session = record_result(session, 4, True, now=2.0)
    assert session.status == COMPLETE
    assert session.current_card is None


def test_record_result_after_complete_is_rejected():
    session = start_session(new_session(make_deck(1)), "flashcard", now=0.0)
    session = record_result(session, 4, True, now=1.0)
    with pytest.raises(SessionStateError):
        record_result(session, 4, True, now=2.0)


def test_prior_session_is_unchanged_by_transitions():
    before = start_session(new_session(make_deck(2)), "flashcard", now=0.0)
    after = record_result(before, 4, True, now=1.0)
    assert before.results == ()
    assert before.cursor == 0
    assert after is not before


def test_reset_session_from_any_state():
    deck = make_deck(6)
    unselected = new_session(deck)
    in_progress = record_result(start_session(new_session(deck), "quiz", now=0.0), 2, False, now=1.0)
    complete = start_session(new_session(make_deck(1)), "flashcard", now=0.0)
    complete = record_result(complete, 5, True, now=1.0)
    for session in (unselected, in_progress, complete):
        fresh = reset_session(session, random.Random(2))
        assert fresh.status == UNSELECTED
        assert fresh.cursor == 0
        assert fresh.results == ()
        assert fresh.started_at is None
        assert fresh.card_started_at is None
        assert Counter(c.id for c in fresh.cards) == Counter(c.id for c in session.deck.cards)


def test_reset_then_start_keeps_permutation():
    deck = make_deck(7)
    session = reset_session(new_session(deck), random.Random(11))
    session = start_session(session, "flashcard", now=0.0)
    assert sorted(c.id for c in session.cards) == sorted(c.id for c in deck.cards)


def test_reset_keeps_prior_log():
    session = start_session(new_session(make_deck(2)), "flashcard", now=0.0)
    session = record_result(session, 4, True, now=1.0)
    fresh = reset_session(session)
    assert len(session.results) == 1
    assert fresh.results == ()
    assert fresh.session_id != session.session_id
