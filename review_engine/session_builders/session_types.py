"""
Typed models shared by the session builders and the review service.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from review_engine.errors import CardStoreError
from review_engine.sm2.card import Card


class SessionStatus(str, Enum):
    """Lifecycle of a review session."""
    IN_PROGRESS = "in_progress"  # Cards handed out, responses pending
    EMPTY = "empty"              # Nothing was due; terminal at creation
    COMPLETED = "completed"      # Responses applied; terminal

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.IN_PROGRESS


@dataclass
class ReviewSession:
    """
    Cards selected for one sitting.

    Owned by a single caller; aggregates are filled in at completion.
    """
    session_id: str
    cards: list[Card]
    session_start: datetime
    user_id: Optional[str] = None
    status: SessionStatus = SessionStatus.IN_PROGRESS
    cards_reviewed: int = 0
    accuracy: float = 0.0

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def card_ids(self) -> list[str]:
        return [c.id for c in self.cards]

    def card_at(self, index: int) -> Optional[Card]:
        """Card at a presentation position, or None past the end."""
        if 0 <= index < len(self.cards):
            return self.cards[index]
        return None


@dataclass(frozen=True)
class SessionStats:
    """Aggregates computed when a session completes."""
    session_id: str
    session_start: datetime
    completed_at: datetime
    cards_reviewed: int
    accuracy: float         # 0-1, share of HARD-or-better responses
    average_quality: float  # mean numeric quality
    rejected: int = 0       # responses skipped for an invalid payload or quality

    @property
    def duration(self) -> timedelta:
        return self.completed_at - self.session_start

    @property
    def duration_ms(self) -> int:
        return int(self.duration.total_seconds() * 1000)


@dataclass
class SessionResult:
    """
    Outcome of completing a session.

    persisted is False (and persist_error set) when the store rejected the
    updated cards; the cards are still returned and kept for retry.
    """
    session: ReviewSession
    updated_cards: list[Card]
    stats: SessionStats
    persisted: bool = True
    persist_error: Optional[CardStoreError] = None
    ignored_card_ids: list[str] = field(default_factory=list)
