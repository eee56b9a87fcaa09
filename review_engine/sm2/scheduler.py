"""
Scheduler - SM-2 Algorithm Logic

Pure SM-2 scheduling (no database calls).

Main workflow:
1. Re-clamp the stored state (interval, repetitions, ease factor)
2. Grow or reset the interval depending on the review quality
3. Update the ease factor from the raw quality value
4. Return the updated card + next review date

This module handles ONLY the algorithm logic.
Persistence is handled by the store modules.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional, Union

from review_engine.errors import InvalidQualityError
from review_engine.schemas import RawResponse, normalize_responses
from review_engine.sm2.card import Card
from review_engine.sm2.constants import (
    DEFAULT_PARAMS,
    QualityLike,
    ReviewQuality,
    SchedulerParams,
    parse_quality,
)


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of scheduling one review."""
    card: Card
    next_review_date: datetime
    interval_days: int


Responses = Union[
    Mapping[str, QualityLike],
    Iterable[RawResponse],
]


def schedule_next_review(
    card: Card,
    quality: QualityLike,
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> ScheduleResult:
    """
    Compute the next schedule for a card after one review.

    Args:
        card: Card being reviewed (not modified)
        quality: Review grade (AGAIN, HARD, GOOD, EASY)
        now: Review timestamp (defaults to now)
        params: Scheduler parameters

    Returns:
        ScheduleResult with the updated card, next review date and interval

    Raises:
        InvalidQualityError: quality is not a valid ReviewQuality
    """
    quality = parse_quality(quality)
    if now is None:
        now = datetime.now(timezone.utc)

    # Stored state is not trusted blindly
    interval = max(card.interval, 1)
    repetitions = max(card.repetitions, 0)
    ease_factor = max(card.ease_factor, params.min_ease_factor)

    if quality.is_correct:
        if repetitions == 0:
            interval = params.initial_interval
        elif repetitions == 1:
            interval = params.second_interval
        else:
            interval = max(_round_half_up(interval * ease_factor), 1)
        repetitions += 1
    else:
        # Lapse: streak and interval reset, ease factor still updates below
        repetitions = 0
        interval = params.initial_interval

    ease_factor = update_ease_factor(ease_factor, quality, params)

    next_review_date = now + timedelta(days=interval)
    updated = replace(
        card,
        interval=interval,
        repetitions=repetitions,
        ease_factor=ease_factor,
        due_date=next_review_date,
        last_reviewed=now
    )

    return ScheduleResult(
        card=updated,
        next_review_date=next_review_date,
        interval_days=interval
    )


def update_ease_factor(
    ease_factor: float,
    quality: ReviewQuality,
    params: SchedulerParams = DEFAULT_PARAMS
) -> float:
    """
    Apply the SM-2 ease-factor update.

    Formula: EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at
    params.min_ease_factor. Uses the raw quality value for passes and lapses
    alike.
    """
    distance = 5 - int(quality)
    ease_factor = ease_factor + (0.1 - distance * (0.08 + distance * 0.02))
    return max(ease_factor, params.min_ease_factor)


def batch_update_cards(
    cards: Iterable[Card],
    responses: Responses,
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> list[Card]:
    """
    Schedule every card that has a response; leave the rest unchanged.

    Args:
        cards: Cards to update
        responses: {card_id: quality} mapping, or an iterable of
            ReviewResponse objects, {"cardId", "quality"} dicts or
            (card_id, quality) pairs. Malformed items are skipped. The last
            response for a card id wins.
        now: Review timestamp shared by the batch (defaults to now)
        params: Scheduler parameters

    Returns:
        Cards in input order. A card whose response has an invalid quality is
        returned unchanged.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    response_map = response_map_from(responses)

    updated = []
    for card in cards:
        quality = response_map.get(card.id)
        if quality is None:
            updated.append(card)
            continue
        try:
            updated.append(schedule_next_review(card, quality, now, params).card)
        except InvalidQualityError:
            updated.append(card)
    return updated


def response_map_from(responses: Responses) -> dict[str, QualityLike]:
    """
    Collapse responses into {card_id: quality}, keeping the last per id.

    Malformed items in an iterable are skipped.
    """
    if isinstance(responses, Mapping):
        return dict(responses)

    valid, _ = normalize_responses(responses)
    return {response.card_id: response.quality for response in valid}


def _round_half_up(value: float) -> int:
    # 12.5 -> 13, unlike round()
    return int(math.floor(value + 0.5))
