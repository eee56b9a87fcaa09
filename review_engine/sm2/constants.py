"""
SM-2 Constants and Parameters

All configurable parameters for the SM-2 scheduler and memory estimator in
one place. Pure functions take a SchedulerParams instance; DEFAULT_PARAMS
carries the values below.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Final, Union

from review_engine.errors import InvalidQualityError


# ---- Review Quality ----

class ReviewQuality(IntEnum):
    """
    Learner grade for one review.

    Values follow the classic SM-2 0-5 scale; the gap between AGAIN and HARD
    is intentional and feeds the ease-factor formula.
    """
    AGAIN = 0   # Complete failure to recall
    HARD = 3    # Recalled with serious difficulty
    GOOD = 4    # Recalled with some difficulty
    EASY = 5    # Recalled perfectly

    @property
    def is_correct(self) -> bool:
        """HARD and above count towards the repetition streak."""
        return self >= ReviewQuality.HARD


QualityLike = Union[ReviewQuality, int, str]


def parse_quality(value: QualityLike) -> ReviewQuality:
    """
    Coerce an enum member, numeric value or name into a ReviewQuality.

    Raises:
        InvalidQualityError: value is not one of AGAIN/HARD/GOOD/EASY
    """
    if isinstance(value, ReviewQuality):
        return value
    if isinstance(value, bool):
        raise InvalidQualityError(f"Invalid review quality: {value!r}")
    if isinstance(value, int):
        try:
            return ReviewQuality(value)
        except ValueError:
            raise InvalidQualityError(f"Invalid review quality: {value!r}") from None
    if isinstance(value, str):
        name = value.strip().upper()
        if name in ReviewQuality.__members__:
            return ReviewQuality[name]
        if name.isdigit():
            return parse_quality(int(name))
    raise InvalidQualityError(f"Invalid review quality: {value!r}")


# ---- Global Constants ----

MIN_EASE_FACTOR: Final[float] = 1.3       # Hard floor for the ease factor
INITIAL_EASE_FACTOR: Final[float] = 2.5   # Ease factor of a new card
INITIAL_INTERVAL: Final[int] = 1          # Days; also the interval after a lapse
SECOND_INTERVAL: Final[int] = 6           # Days after the second correct review


# ---- Memory Estimator ----

TARGET_STRENGTH: Final[float] = 80.0            # Optimal review at 80% strength
CONFIDENCE_PER_REPETITION: Final[int] = 20      # confidence = min(100, reps * 20)

# Difficulty bands by memory strength
EASY_STRENGTH_THRESHOLD: Final[float] = 70.0    # strength > 70 -> easy
HARD_STRENGTH_THRESHOLD: Final[float] = 30.0    # strength < 30 -> hard

# Display labels (lower bound -> label), checked top-down
STRENGTH_LABELS: Final[list[tuple[float, str]]] = [
    (80.0, "Strong"),
    (60.0, "Good"),
    (40.0, "Weak"),
]
DEFAULT_STRENGTH_LABEL: Final[str] = "New"


# ---- Session Configuration ----

DEFAULT_SESSION_SIZE: Final[int] = 20   # Cards per review session
UPCOMING_LIMIT: Final[int] = 10         # "Next N upcoming" cards shown to planners


@dataclass(frozen=True)
class SchedulerParams:
    """
    Algorithm constants injected into the scheduler and memory estimator.
    """
    min_ease_factor: float = MIN_EASE_FACTOR
    initial_ease_factor: float = INITIAL_EASE_FACTOR
    initial_interval: int = INITIAL_INTERVAL
    second_interval: int = SECOND_INTERVAL
    target_strength: float = TARGET_STRENGTH
    confidence_per_repetition: int = CONFIDENCE_PER_REPETITION

    def __post_init__(self):
        if self.initial_interval < 1:
            raise ValueError("initial_interval must be at least 1 day")
        if self.initial_ease_factor < self.min_ease_factor:
            raise ValueError("initial_ease_factor must not be below min_ease_factor")


DEFAULT_PARAMS: Final[SchedulerParams] = SchedulerParams()
