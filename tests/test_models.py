"""Tests for data model classes."""
import dataclasses

import pytest

from flashstudy.models import STUDY_MODES, Card, Deck, SessionResult, SessionSummary


def test_card_defaults():
    c = Card(id=1, deck_id=2, front_text="Q?", back_text="A")
    assert c.difficulty_level == 1
    assert c.front_image_url is None
    assert c.back_image_url is None


def test_card_is_immutable():
    c = Card(id=1, deck_id=2, front_text="Q?", back_text="A")
    with pytest.raises(dataclasses.FrozenInstanceError):
        c.front_text = "changed"


def test_deck_defaults():
    d = Deck(id=1, title="Biology", user_id="alice")
    assert d.cards == ()
    assert d.is_public is False
    assert d.description is None
    assert d.subject is None


def test_session_result_is_immutable():
    r = SessionResult(flashcard_id=1, difficulty_rating=4, time_spent_seconds=3, is_correct=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        r.is_correct = False


def test_session_summary_fields():
    s = SessionSummary(total_cards=3, correct_count=2, accuracy=67,
                       average_seconds=4, average_rating=3.7, total_seconds=12)
    assert s.total_cards == 3
    assert s.average_rating == 3.7


def test_study_modes():
    assert STUDY_MODES == ("flashcard", "quiz", "adaptive")
