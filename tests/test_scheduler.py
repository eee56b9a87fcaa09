"""Tests for the SM-2 scheduler algorithm."""

import itertools
from datetime import timedelta

import pytest

from conftest import NOW, make_card
from review_engine.errors import InvalidQualityError
from review_engine.sm2.card import check_card_invariants, create_card
from review_engine.sm2.constants import MIN_EASE_FACTOR, ReviewQuality, SchedulerParams
from review_engine.sm2.scheduler import (
    batch_update_cards,
    schedule_next_review,
    update_ease_factor,
)

PASSING = [ReviewQuality.HARD, ReviewQuality.GOOD, ReviewQuality.EASY]


def test_create_card_defaults():
    card = create_card("c1", "bula", "hello", context="greeting", now=NOW)
    assert card.interval == 1
    assert card.repetitions == 0
    assert card.ease_factor == 2.5
    assert card.due_date == NOW
    assert card.last_reviewed is None
    assert card.is_new
    assert card.context == "greeting"
    assert card.audio_reference is None
    assert check_card_invariants(card) == []


def test_new_card_good_review():
    card = create_card("c1", "bula", "hello", now=NOW)
    result = schedule_next_review(card, ReviewQuality.GOOD, now=NOW)

    assert result.card.interval == 1
    assert result.card.repetitions == 1
    assert result.card.ease_factor == pytest.approx(2.5)
    assert result.card.due_date == NOW + timedelta(days=1)
    assert result.card.last_reviewed == NOW
    assert result.next_review_date == NOW + timedelta(days=1)
    assert result.interval_days == 1


def test_second_good_review_gives_six_days():
    card = create_card("c1", "bula", "hello", now=NOW)
    first = schedule_next_review(card, ReviewQuality.GOOD, now=NOW).card
    later = NOW + timedelta(days=1)
    second = schedule_next_review(first, ReviewQuality.GOOD, now=later)

    assert second.card.repetitions == 2
    assert second.card.interval == 6
    assert second.card.due_date == later + timedelta(days=6)


def test_third_review_multiplies_by_ease_factor():
    card = make_card(interval=6, repetitions=2, ease_factor=2.5)
    result = schedule_next_review(card, ReviewQuality.GOOD, now=NOW)
    assert result.card.interval == 15
    assert result.card.repetitions == 3


def test_interval_rounds_half_up():
    card = make_card(interval=5, repetitions=2, ease_factor=2.5)
    result = schedule_next_review(card, ReviewQuality.GOOD, now=NOW)
    assert result.card.interval == 13


@pytest.mark.parametrize("quality", PASSING)
@pytest.mark.parametrize("ease_factor", [1.3, 1.9, 2.5, 3.7])
def test_first_success_always_one_day(quality, ease_factor):
    card = make_card(ease_factor=ease_factor)
    result = schedule_next_review(card, quality, now=NOW)
    assert result.card.interval == 1
    assert result.card.repetitions == 1


@pytest.mark.parametrize("quality", PASSING)
def test_second_success_always_six_days(quality):
    card = make_card(interval=1, repetitions=1, ease_factor=1.3, reviewed_days_ago=1)
    result = schedule_next_review(card, quality, now=NOW)
    assert result.card.interval == 6
    assert result.card.repetitions == 2


def test_lapse_resets_streak_and_lowers_ease():
    card = make_card(interval=10, repetitions=3, ease_factor=2.5)
    result = schedule_next_review(card, ReviewQuality.AGAIN, now=NOW)

    assert result.card.repetitions == 0
    assert result.card.interval == 1
    assert result.card.ease_factor < 2.5
    assert result.card.ease_factor >= MIN_EASE_FACTOR
    assert result.card.ease_factor == pytest.approx(1.7)
    assert result.card.due_date == NOW + timedelta(days=1)


def test_lapse_at_floor_stays_at_floor():
    card = make_card(interval=3, repetitions=4, ease_factor=1.3)
    result = schedule_next_review(card, ReviewQuality.AGAIN, now=NOW)
    assert result.card.ease_factor == MIN_EASE_FACTOR


@pytest.mark.parametrize("quality, delta", [
    (ReviewQuality.AGAIN, -0.8),
    (ReviewQuality.HARD, -0.14),
    (ReviewQuality.GOOD, 0.0),
    (ReviewQuality.EASY, 0.1),
])
def test_ease_factor_formula(quality, delta):
    assert update_ease_factor(2.5, quality) == pytest.approx(max(2.5 + delta, 1.3))


def test_floor_and_interval_invariants_over_quality_sequences():
    qualities = list(ReviewQuality)
    for sequence in itertools.product(qualities, repeat=4):
        card = create_card("c1", "f", "b", now=NOW)
        now = NOW
        for quality in sequence:
            card = schedule_next_review(card, quality, now=now).card
            assert card.ease_factor >= MIN_EASE_FACTOR
            assert card.interval >= 1
            assert card.repetitions >= 0
            now = card.due_date


def test_degenerate_state_is_healed():
    card = make_card(interval=0, repetitions=-2, ease_factor=0.4)
    assert len(check_card_invariants(card)) == 3

    result = schedule_next_review(card, ReviewQuality.EASY, now=NOW)
    assert result.card.ease_factor >= MIN_EASE_FACTOR
    assert result.card.interval == 1
    assert result.card.repetitions == 1
    assert check_card_invariants(result.card) == []


def test_scheduling_does_not_mutate_input():
    card = make_card(interval=6, repetitions=2)
    schedule_next_review(card, ReviewQuality.EASY, now=NOW)
    assert card.interval == 6
    assert card.repetitions == 2
    assert card.last_reviewed is None


def test_quality_accepts_values_and_names():
    card = make_card()
    assert schedule_next_review(card, 4, now=NOW).card.repetitions == 1
    assert schedule_next_review(card, "easy", now=NOW).card.repetitions == 1
    assert schedule_next_review(card, 0, now=NOW).card.repetitions == 0


@pytest.mark.parametrize("bad", [1, 2, 6, -1, "meh", None, True])
def test_invalid_quality_raises(bad):
    with pytest.raises(InvalidQualityError):
        schedule_next_review(make_card(), bad, now=NOW)


def test_custom_params():
    params = SchedulerParams(second_interval=4, min_ease_factor=1.5)
    card = make_card(interval=1, repetitions=1, ease_factor=1.5)
    result = schedule_next_review(card, ReviewQuality.AGAIN, now=NOW, params=params)
    assert result.card.ease_factor == 1.5

    result = schedule_next_review(card, ReviewQuality.GOOD, now=NOW, params=params)
    assert result.card.interval == 4


def test_params_reject_inconsistent_values():
    with pytest.raises(ValueError):
        SchedulerParams(initial_interval=0)
    with pytest.raises(ValueError):
        SchedulerParams(initial_ease_factor=1.0)


def test_batch_update_only_touches_cards_with_responses():
    cards = [make_card("a"), make_card("b"), make_card("c")]
    updated = batch_update_cards(cards, {"a": ReviewQuality.GOOD, "c": ReviewQuality.AGAIN}, now=NOW)

    assert [c.id for c in updated] == ["a", "b", "c"]
    assert updated[0].repetitions == 1
    assert updated[0].last_reviewed == NOW
    assert updated[1] is cards[1]
    assert updated[2].repetitions == 0
    assert updated[2].last_reviewed == NOW


def test_batch_update_last_response_wins():
    cards = [make_card("a")]
    updated = batch_update_cards(
        cards,
        [("a", ReviewQuality.EASY), ("a", ReviewQuality.AGAIN)],
        now=NOW
    )
    assert updated[0].repetitions == 0
    assert updated[0].ease_factor == pytest.approx(1.7)


def test_batch_update_skips_invalid_quality():
    cards = [make_card("a"), make_card("b")]
    updated = batch_update_cards(cards, {"a": 7, "b": ReviewQuality.GOOD}, now=NOW)
    assert updated[0] is cards[0]
    assert updated[1].repetitions == 1


def test_batch_update_accepts_record_shaped_responses():
    cards = [make_card("a"), make_card("b")]
    updated = batch_update_cards(
        cards,
        [{"cardId": "a", "quality": 4}, ("b", ReviewQuality.GOOD)],
        now=NOW
    )
    assert updated[0].repetitions == 1
    assert updated[1].repetitions == 1


@pytest.mark.parametrize("bad", [
    ("a",),
    ("a", ReviewQuality.GOOD, "extra"),
    {"quality": 4},
    {"cardId": "a", "quality": 2},
    "a",
    None,
])
def test_batch_update_skips_malformed_items(bad):
    cards = [make_card("a"), make_card("b")]
    updated = batch_update_cards(cards, [bad, ("b", ReviewQuality.GOOD)], now=NOW)
    assert updated[0] is cards[0]
    assert updated[1].repetitions == 1


def test_batch_update_matches_single_scheduling():
    cards = [make_card("a", interval=6, repetitions=2), make_card("b", interval=1, repetitions=1)]
    responses = {"a": ReviewQuality.HARD, "b": ReviewQuality.EASY}
    updated = batch_update_cards(cards, responses, now=NOW)
    for card, new in zip(cards, updated):
        assert new == schedule_next_review(card, responses[card.id], now=NOW).card
