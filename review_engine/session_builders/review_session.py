"""
Review Session - due-card session creation and completion

Creates review sessions from the due pool and applies the learner's responses
at the end of the sitting.

Session Logic:
- Start: due cards (due_date <= now), truncated to max_cards, shuffled once
- Completion: last response per card id wins, unknown ids are ignored,
  each remaining response goes through the SM-2 scheduler

No database calls; persistence is the caller's job.
"""

from __future__ import annotations
import random
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from review_engine.errors import SessionStateError
from review_engine.schemas import RawResponse, ReviewResponse, normalize_responses
from review_engine.session_builders.session_types import (
    ReviewSession,
    SessionResult,
    SessionStats,
    SessionStatus,
)
from review_engine.sm2.card import Card
from review_engine.sm2.constants import DEFAULT_PARAMS, DEFAULT_SESSION_SIZE, SchedulerParams
from review_engine.sm2.due_cards import get_due_cards
from review_engine.sm2.scheduler import schedule_next_review


def start_session(
    all_cards: Iterable[Card],
    max_cards: int = DEFAULT_SESSION_SIZE,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    user_id: Optional[str] = None
) -> ReviewSession:
    """
    Create a review session from the cards that are due.

    Args:
        all_cards: Candidate cards (typically all of a user's cards)
        max_cards: Session size cap (negative values mean 0)
        now: Session start timestamp (defaults to now)
        rng: Random source for the shuffle (seed it for reproducible order)
        user_id: Optional owner, carried for persistence of stats

    Returns:
        ReviewSession in IN_PROGRESS state, or EMPTY when nothing is due
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if rng is None:
        rng = random.Random()

    due_cards = get_due_cards(all_cards, now)
    session_cards = due_cards[:max(max_cards, 0)]

    # Shuffle once to avoid positional bias
    rng.shuffle(session_cards)

    status = SessionStatus.IN_PROGRESS if session_cards else SessionStatus.EMPTY

    return ReviewSession(
        session_id=uuid.uuid4().hex,
        cards=session_cards,
        session_start=now,
        user_id=user_id,
        status=status
    )


def complete_session(
    session: ReviewSession,
    responses: Iterable[RawResponse],
    now: Optional[datetime] = None,
    params: SchedulerParams = DEFAULT_PARAMS
) -> SessionResult:
    """
    Apply a session's responses and compute its statistics.

    Workflow:
    1. Validate responses (invalid entries are counted, not fatal)
    2. Keep the last response per card id
    3. Drop responses for cards not in the session
    4. Schedule each remaining card
    5. Fill session aggregates and mark it COMPLETED

    Args:
        session: Session to complete (marked COMPLETED in place)
        responses: Learner responses collected during the session
        now: Completion timestamp (defaults to now)
        params: Scheduler parameters

    Returns:
        SessionResult with updated cards (session order) and stats

    Raises:
        SessionStateError: session was already completed
    """
    if session.status is SessionStatus.COMPLETED:
        raise SessionStateError(f"Session {session.session_id} is already completed")
    if now is None:
        now = datetime.now(timezone.utc)

    valid, rejected = normalize_responses(responses)

    # Last write wins per card id
    latest: dict[str, ReviewResponse] = {}
    for response in valid:
        latest[response.card_id] = response

    session_ids = set(session.card_ids)
    ignored = [card_id for card_id in latest if card_id not in session_ids]

    updated_by_id: dict[str, Card] = {}
    applied: list[ReviewResponse] = []
    for card in session.cards:
        response = latest.get(card.id)
        if response is None or card.id in updated_by_id:
            continue
        updated_by_id[card.id] = schedule_next_review(card, response.quality, now, params).card
        applied.append(response)

    stats = _build_stats(session, applied, rejected, now)

    session.status = SessionStatus.COMPLETED
    session.cards_reviewed = stats.cards_reviewed
    session.accuracy = stats.accuracy
    session.cards = [updated_by_id.get(card.id, card) for card in session.cards]
    updated_cards = list(updated_by_id.values())

    return SessionResult(
        session=session,
        updated_cards=updated_cards,
        stats=stats,
        ignored_card_ids=ignored
    )


def _build_stats(
    session: ReviewSession,
    applied: list[ReviewResponse],
    rejected: int,
    now: datetime
) -> SessionStats:
    reviewed = len(applied)
    if reviewed:
        correct = sum(1 for r in applied if r.quality.is_correct)
        accuracy = correct / reviewed
        average_quality = sum(int(r.quality) for r in applied) / reviewed
    else:
        accuracy = 0.0
        average_quality = 0.0

    return SessionStats(
        session_id=session.session_id,
        session_start=session.session_start,
        completed_at=now,
        cards_reviewed=reviewed,
        accuracy=accuracy,
        average_quality=average_quality,
        rejected=rejected
    )
