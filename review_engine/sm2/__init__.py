"""
SM-2 - SuperMemo-2 Spaced Repetition Scheduler

Main API for card scheduling.

This module implements the classic SM-2 algorithm with:
- Interval growth driven by a per-card ease factor (floor 1.3)
- Lapse handling that resets the repetition streak
- Linear memory-strength estimate relative to the card's interval
- Pluggable card stores (in-memory, SQL, MongoDB)

Quick start:
    from review_engine import sm2

    card = sm2.create_card("c1", "bula", "hello")

    # Process a review (algorithm only, no DB calls)
    result = sm2.schedule_next_review(card, sm2.ReviewQuality.GOOD)

    # Get due cards
    due_cards = sm2.get_due_cards(cards)
"""

# Card state
from review_engine.sm2.card import Card, create_card, check_card_invariants

# Constants and parameters
from review_engine.sm2.constants import (
    ReviewQuality,
    SchedulerParams,
    DEFAULT_PARAMS,
    parse_quality,
    MIN_EASE_FACTOR,
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL,
    SECOND_INTERVAL,
    TARGET_STRENGTH,
    DEFAULT_SESSION_SIZE,
    UPCOMING_LIMIT,
)

# Core scheduler API (algorithm logic)
from review_engine.sm2.scheduler import (
    ScheduleResult,
    schedule_next_review,
    batch_update_cards,
    update_ease_factor,
)

# Memory estimator
from review_engine.sm2.memory_state import (
    MemoryStrength,
    calculate_memory_strength,
    calculate_confidence,
    get_optimal_review_time,
    get_memory_strength,
    get_memory_strengths,
    get_optimal_review_schedule,
    get_cards_by_difficulty,
    strength_label,
)

# Due-set selection
from review_engine.sm2.due_cards import (
    DueSet,
    get_due_cards,
    get_upcoming_cards,
    partition_cards,
)

# Card stores
from review_engine.sm2.store import CardStore, InMemoryCardStore
from review_engine.sm2.database import SqlCardStore
from review_engine.sm2.mongo_store import MongoCardStore


__all__ = [
    # Card state
    "Card",
    "create_card",
    "check_card_invariants",

    # Core algorithm
    "ScheduleResult",
    "schedule_next_review",
    "batch_update_cards",
    "update_ease_factor",

    # Memory estimator
    "MemoryStrength",
    "calculate_memory_strength",
    "calculate_confidence",
    "get_optimal_review_time",
    "get_memory_strength",
    "get_memory_strengths",
    "get_optimal_review_schedule",
    "get_cards_by_difficulty",
    "strength_label",

    # Due-set selection
    "DueSet",
    "get_due_cards",
    "get_upcoming_cards",
    "partition_cards",

    # Stores
    "CardStore",
    "InMemoryCardStore",
    "SqlCardStore",
    "MongoCardStore",

    # Enums
    "ReviewQuality",
    "parse_quality",

    # Parameters
    "SchedulerParams",
    "DEFAULT_PARAMS",
    "MIN_EASE_FACTOR",
    "INITIAL_EASE_FACTOR",
    "INITIAL_INTERVAL",
    "SECOND_INTERVAL",
    "TARGET_STRENGTH",
    "DEFAULT_SESSION_SIZE",
    "UPCOMING_LIMIT",
]
