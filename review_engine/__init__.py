"""
Spaced-repetition review engine.

SM-2 scheduling, memory-strength estimates and review sessions for
vocabulary cards. The algorithm lives in review_engine.sm2, session
construction in review_engine.session_builders, and the stateful
orchestration (cache + card store) in review_engine.service.
"""

from review_engine.errors import (
    ReviewEngineError,
    InvalidQualityError,
    CardStoreError,
    CardNotFoundError,
    SessionStateError,
)
from review_engine.clock import Clock, SystemClock, FixedClock
from review_engine.sm2 import (
    Card,
    ReviewQuality,
    SchedulerParams,
    ScheduleResult,
    MemoryStrength,
    create_card,
    schedule_next_review,
    batch_update_cards,
    get_due_cards,
    get_upcoming_cards,
    calculate_memory_strength,
    get_optimal_review_time,
)
from review_engine.schemas import CardDocument, ReviewResponse, VocabularyItem
from review_engine.session_builders import (
    ReviewSession,
    SessionResult,
    SessionStats,
    SessionStatus,
    start_session,
    complete_session,
)
from review_engine.service import ReviewService

__version__ = "0.1.0"

__all__ = [
    "ReviewEngineError",
    "InvalidQualityError",
    "CardStoreError",
    "CardNotFoundError",
    "SessionStateError",
    "Clock",
    "SystemClock",
    "FixedClock",
    "Card",
    "ReviewQuality",
    "SchedulerParams",
    "ScheduleResult",
    "MemoryStrength",
    "create_card",
    "schedule_next_review",
    "batch_update_cards",
    "get_due_cards",
    "get_upcoming_cards",
    "calculate_memory_strength",
    "get_optimal_review_time",
    "CardDocument",
    "ReviewResponse",
    "VocabularyItem",
    "ReviewSession",
    "SessionResult",
    "SessionStats",
    "SessionStatus",
    "start_session",
    "complete_session",
    "ReviewService",
]
