"""
Memory State - strength and optimal review time

Derives interpretable read-time signals from a card without changing it.

Key concepts:
- Strength (0-100): decays linearly from 100 right after a review to 0 once
  a full interval has passed
- Confidence (0-100): how many correct repetitions back the interval
- Optimal review time: when strength falls to the target threshold (80)
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Literal, Optional

from review_engine.sm2.card import Card
from review_engine.sm2.constants import (
    DEFAULT_PARAMS,
    DEFAULT_STRENGTH_LABEL,
    EASY_STRENGTH_THRESHOLD,
    HARD_STRENGTH_THRESHOLD,
    STRENGTH_LABELS,
    SchedulerParams,
)


DifficultyLevel = Literal["easy", "medium", "hard"]

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class MemoryStrength:
    """
    Read-time memory estimate for one card. Never persisted.
    """
    card_id: str
    strength: float    # 0-100
    confidence: float  # 0-100
    last_calculated: datetime


def get_days_since_review(card: Card, now: Optional[datetime] = None) -> Optional[int]:
    """
    Whole days since the last review, or None for a never-reviewed card.
    """
    if card.last_reviewed is None:
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    delta = now - card.last_reviewed
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)


def calculate_memory_strength(card: Card, now: Optional[datetime] = None) -> float:
    """
    Calculate memory strength with a linear decay over the card's interval.

    Formula: strength = 100 - (days_since_review / interval) * 100

    Interpretation:
    - Right after a review: 100
    - Exactly one interval later: 0
    - Never reviewed: 0

    Args:
        card: Card to evaluate
        now: Evaluation timestamp (defaults to now)

    Returns:
        Strength clamped to [0, 100]
    """
    days_since_review = get_days_since_review(card, now)
    if days_since_review is None:
        return 0.0

    interval = max(card.interval, 1)
    strength = max(0.0, 100.0 - (days_since_review / interval) * 100.0)
    return min(100.0, strength)


def get_optimal_review_time(
    card: Card,
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> datetime:
    """
    Predict when the card reaches the target strength (80 by default).

    Cards at or below the target are best reviewed now. Otherwise:
    days_to_optimal = ((strength - target) / 100) * interval

    Args:
        card: Card to evaluate
        now: Evaluation timestamp (defaults to now)
        params: Supplies the target strength

    Returns:
        Optimal review timestamp (fractional days allowed)
    """
    if now is None:
        now = datetime.now(timezone.utc)

    current_strength = calculate_memory_strength(card, now)
    if current_strength <= params.target_strength:
        return now

    days_to_optimal = ((current_strength - params.target_strength) / 100.0) * max(card.interval, 1)
    return now + timedelta(days=days_to_optimal)


def calculate_confidence(card: Card, params: SchedulerParams = DEFAULT_PARAMS) -> float:
    """Saturating confidence: min(100, repetitions * 20)."""
    return float(min(100, max(card.repetitions, 0) * params.confidence_per_repetition))


def get_memory_strength(
    card: Card,
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> MemoryStrength:
    if now is None:
        now = datetime.now(timezone.utc)
    return MemoryStrength(
        card_id=card.id,
        strength=calculate_memory_strength(card, now),
        confidence=calculate_confidence(card, params),
        last_calculated=now
    )


def get_memory_strengths(
    cards: Iterable[Card],
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> list[MemoryStrength]:
    """Memory strength for each card, evaluated at the same instant."""
    if now is None:
        now = datetime.now(timezone.utc)
    return [get_memory_strength(card, now, params) for card in cards]


def get_optimal_review_schedule(
    cards: Iterable[Card],
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> list[tuple[Card, datetime]]:
    """Pair each card with its optimal review time."""
    if now is None:
        now = datetime.now(timezone.utc)
    return [(card, get_optimal_review_time(card, now, params)) for card in cards]


def get_cards_by_difficulty(
    cards: Iterable[Card],
    level: DifficultyLevel,
    now: Optional[datetime] = None
) -> list[Card]:
    """
    Filter cards by strength band.

    - easy: strength > 70
    - medium: 30 <= strength <= 70
    - hard: strength < 30

    An unrecognised level returns every card.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    result = []
    for card in cards:
        strength = calculate_memory_strength(card, now)
        if level == "easy":
            keep = strength > EASY_STRENGTH_THRESHOLD
        elif level == "medium":
            keep = HARD_STRENGTH_THRESHOLD <= strength <= EASY_STRENGTH_THRESHOLD
        elif level == "hard":
            keep = strength < HARD_STRENGTH_THRESHOLD
        else:
            keep = True
        if keep:
            result.append(card)
    return result


def strength_label(strength: float) -> str:
    """Display label for a strength value."""
    for lower_bound, label in STRENGTH_LABELS:
        if strength >= lower_bound:
            return label
    return DEFAULT_STRENGTH_LABEL
