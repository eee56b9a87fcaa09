"""
Card - SM-2 card state

Defines the card record the scheduler works on and the constructor for new
cards.

Key fields:
- interval: days until the next review (>= 1)
- repetitions: consecutive correct reviews (reset on a lapse)
- ease_factor: interval growth multiplier (>= 1.3)
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from review_engine.sm2.constants import DEFAULT_PARAMS, SchedulerParams


@dataclass(frozen=True)
class Card:
    """
    One unit of learnable material plus its scheduling state.

    Cards are immutable; scheduling returns a new Card.
    """
    id: str
    front: str
    back: str

    # Scheduling state
    interval: int
    repetitions: int
    ease_factor: float
    due_date: datetime
    last_reviewed: Optional[datetime] = None

    # Supplementary content (no effect on scheduling)
    context: Optional[str] = None
    audio_reference: Optional[str] = None

    @property
    def is_new(self) -> bool:
        """True until the first review."""
        return self.last_reviewed is None

    def is_due(self, now: datetime) -> bool:
        return self.due_date <= now


def create_card(
    id: str,
    front: str,
    back: str,
    context: Optional[str] = None,
    audio_reference: Optional[str] = None,
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> Card:
    """
    Initialize a card that has never been reviewed.

    New cards are due immediately.

    Args:
        id: Unique card identifier
        front: Prompt side
        back: Answer side
        context: Optional usage context
        audio_reference: Optional pronunciation audio reference
        now: Creation timestamp (defaults to now)
        params: Scheduler parameters supplying the initial state

    Returns:
        New Card with interval=1, repetitions=0, ease_factor=2.5
    """
    if now is None:
        now = datetime.now(timezone.utc)

    return Card(
        id=id,
        front=front,
        back=back,
        context=context,
        audio_reference=audio_reference,
        interval=params.initial_interval,
        repetitions=0,
        ease_factor=params.initial_ease_factor,
        due_date=now,
        last_reviewed=None
    )


def check_card_invariants(card: Card, params: SchedulerParams = DEFAULT_PARAMS) -> list[str]:
    """
    List the invariants a card violates (empty when the card is sound).
    """
    problems = []
    if not card.id:
        problems.append("id must be non-empty")
    if card.interval < 1:
        problems.append(f"interval {card.interval} < 1")
    if card.repetitions < 0:
        problems.append(f"repetitions {card.repetitions} < 0")
    if card.ease_factor < params.min_ease_factor:
        problems.append(f"ease_factor {card.ease_factor} < {params.min_ease_factor}")
    return problems
