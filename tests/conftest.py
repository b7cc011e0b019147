import pytest

from flashstudy.clock import SessionClock
from flashstudy.models import Card, Deck


class FakeTime:
    """Manually advanced time source."""

    def __init__(self, start=1000.0):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback on demand.

    Like the real timer, an unstarted or cancelled timer never fires.
    """

    instances = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled:
            self.function()


def make_deck(n, deck_id=1):
    cards = tuple(
        Card(id=i, deck_id=deck_id, front_text=f"Q{i}", back_text=f"A{i}", difficulty_level=(i % 5) + 1)
        for i in range(1, n + 1)
    )
    return Deck(id=deck_id, title=f"Deck {deck_id}", user_id="alice", cards=cards)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_flashstudy.db")
    return db_path


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clock(fake_time):
    return SessionClock(fake_time)


@pytest.fixture
def fake_timer():
    FakeTimer.instances = []
    return FakeTimer
