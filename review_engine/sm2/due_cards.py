"""
Due-set selection (no DB calls).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from review_engine.sm2.card import Card


@dataclass(frozen=True)
class DueSet:
    due: list[Card]
    upcoming: list[Card]


def get_due_cards(cards: Iterable[Card], now: Optional[datetime] = None) -> list[Card]:
    """
    Cards with due_date <= now, in input order.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return [c for c in cards if c.due_date <= now]


def get_upcoming_cards(
    cards: Iterable[Card],
    now: Optional[datetime] = None,
    limit: Optional[int] = None
) -> list[Card]:
    """
    Cards not yet due, soonest first, optionally capped to limit.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    upcoming = [c for c in cards if c.due_date > now]
    upcoming.sort(key=lambda c: c.due_date)

    if limit is not None:
        return upcoming[:max(limit, 0)]
    return upcoming


def partition_cards(
    cards: Iterable[Card],
    now: Optional[datetime] = None,
    upcoming_limit: Optional[int] = None
) -> DueSet:
    """Split cards into the due-now set and the upcoming set."""
    if now is None:
        now = datetime.now(timezone.utc)
    cards = list(cards)
    return DueSet(
        due=get_due_cards(cards, now),
        upcoming=get_upcoming_cards(cards, now, upcoming_limit)
    )
