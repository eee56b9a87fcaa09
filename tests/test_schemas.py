"""Tests for pydantic schemas, quality parsing and the clock."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from conftest import NOW, make_card
from review_engine.clock import FixedClock, SystemClock
from review_engine.errors import InvalidQualityError
from review_engine.schemas import CardDocument, ReviewResponse, VocabularyItem, normalize_responses
from review_engine.sm2.constants import ReviewQuality, parse_quality


def test_quality_values_keep_classic_gap():
    assert [int(q) for q in ReviewQuality] == [0, 3, 4, 5]
    assert not ReviewQuality.AGAIN.is_correct
    assert ReviewQuality.HARD.is_correct


@pytest.mark.parametrize("raw, expected", [
    (ReviewQuality.GOOD, ReviewQuality.GOOD),
    (0, ReviewQuality.AGAIN),
    ("hard", ReviewQuality.HARD),
    (" Easy ", ReviewQuality.EASY),
    ("4", ReviewQuality.GOOD),
])
def test_parse_quality(raw, expected):
    assert parse_quality(raw) is expected


@pytest.mark.parametrize("raw", [1, "2", "medium", 4.0, None, False])
def test_parse_quality_rejects(raw):
    with pytest.raises(InvalidQualityError):
        parse_quality(raw)


def test_invalid_quality_error_is_value_error():
    assert issubclass(InvalidQualityError, ValueError)


def test_review_response_aliases():
    response = ReviewResponse.model_validate({"cardId": "a", "quality": "GOOD"})
    assert response.card_id == "a"
    assert response.quality is ReviewQuality.GOOD


@pytest.mark.parametrize("model", [ReviewResponse, CardDocument, VocabularyItem])
def test_models_use_config_dict(model):
    assert "Config" not in vars(model)
    assert model.model_config["populate_by_name"] is True


def test_normalize_responses_counts_rejects():
    valid, rejected = normalize_responses([
        {"cardId": "a", "quality": 4},
        ("b",),
        ("c", "easy"),
        {"card_id": "d", "quality": 1},
        42,
    ])
    assert [(r.card_id, r.quality) for r in valid] == [("a", ReviewQuality.GOOD), ("c", ReviewQuality.EASY)]
    assert rejected == 3


def test_review_response_rejects_bad_quality():
    with pytest.raises(ValidationError):
        ReviewResponse(card_id="a", quality=2)


def test_card_document_round_trip():
    card = make_card("a", interval=6, repetitions=2, reviewed_days_ago=1, context="ctx")
    document = CardDocument.from_card(card)
    assert document.to_card() == card

    record = document.to_record()
    assert set(record) == {
        "id", "front", "back", "context", "audioReference",
        "interval", "repetitions", "easeFactor", "dueDate", "lastReviewed",
    }


def test_card_document_defaults_for_minimal_record():
    card = CardDocument.model_validate({
        "id": "a", "front": "bula", "back": "hello", "dueDate": "2025-03-01T12:00:00Z",
    }).to_card()
    assert card.interval == 1
    assert card.repetitions == 0
    assert card.ease_factor == 2.5
    assert card.due_date == NOW
    assert card.last_reviewed is None


def test_vocabulary_item_strips_and_requires_text():
    item = VocabularyItem(word=" bula ", translation="hello ")
    assert (item.word, item.translation) == ("bula", "hello")

    with pytest.raises(ValidationError):
        VocabularyItem(word="", translation="hello")


def test_fixed_clock():
    clock = FixedClock(datetime(2025, 1, 1))
    assert clock.now().tzinfo is timezone.utc
    clock.advance(days=2, hours=1)
    assert clock.now() == datetime(2025, 1, 3, 1, tzinfo=timezone.utc)
    clock.set(NOW)
    assert clock.now() == NOW


def test_system_clock_is_utc():
    now = SystemClock().now()
    assert now.tzinfo is not None
    assert abs(now - datetime.now(timezone.utc)) < timedelta(seconds=5)
