"""Review session creation and completion."""

from review_engine.session_builders.session_types import (
    ReviewSession,
    SessionResult,
    SessionStats,
    SessionStatus,
)
from review_engine.session_builders.review_session import (
    start_session,
    complete_session,
    normalize_responses,
)

__all__ = [
    "ReviewSession",
    "SessionResult",
    "SessionStats",
    "SessionStatus",
    "start_session",
    "complete_session",
    "normalize_responses",
]
