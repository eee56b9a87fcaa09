"""Shared test fixtures."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from review_engine.clock import FixedClock
from review_engine.errors import CardStoreError
from review_engine.sm2.card import Card
from review_engine.sm2.database import SqlCardStore, get_engine
from review_engine.sm2.store import InMemoryCardStore


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_card(card_id="c1", interval=1, repetitions=0, ease_factor=2.5,
              due_in_days=0.0, reviewed_days_ago=None, now=NOW, **kwargs):
    """Build a card relative to a reference time."""
    last_reviewed = None
    if reviewed_days_ago is not None:
        last_reviewed = now - timedelta(days=reviewed_days_ago)
    return Card(
        id=card_id,
        front=kwargs.pop("front", f"front {card_id}"),
        back=kwargs.pop("back", f"back {card_id}"),
        interval=interval,
        repetitions=repetitions,
        ease_factor=ease_factor,
        due_date=now + timedelta(days=due_in_days),
        last_reviewed=last_reviewed,
        **kwargs
    )


class FlakyStore(InMemoryCardStore):
    """In-memory store that can be switched off to simulate an outage."""

    def __init__(self):
        super().__init__()
        self.available = True
        self.put_calls = 0

    def _check(self):
        if not self.available:
            raise CardStoreError("store unavailable")

    def get_all(self, user_id):
        self._check()
        return super().get_all(user_id)

    def get(self, user_id, card_id):
        self._check()
        return super().get(user_id, card_id)

    def put(self, user_id, card):
        self._check()
        super().put(user_id, card)

    def put_many(self, user_id, cards):
        self.put_calls += 1
        self._check()
        super().put_many(user_id, cards)

    def record_session(self, user_id, stats):
        self._check()
        super().record_session(user_id, stats)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def memory_store():
    return InMemoryCardStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def sql_store(tmp_path):
    """SQLite-backed store in a temporary directory."""
    engine = get_engine(f"sqlite:///{tmp_path / 'srs_cards.db'}")
    store = SqlCardStore(engine)
    yield store
    engine.dispose()
