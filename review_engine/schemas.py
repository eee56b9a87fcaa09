"""
Pydantic models for card records, review responses and vocabulary imports.

These models define the persisted card document shape (camelCase keys, as
stored by the document store and exported to the application) and validate
the loosely-typed payloads that arrive from session and import flows.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from review_engine.sm2.card import Card
from review_engine.sm2.constants import (
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL,
    QualityLike,
    ReviewQuality,
    parse_quality,
)


def _ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stores may hand back naive UTC datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---- Review Responses ----

class ReviewResponse(BaseModel):
    """One learner response collected during a session."""
    card_id: str = Field(..., min_length=1, alias="cardId", description="Id of the reviewed card")
    quality: ReviewQuality = Field(..., description="AGAIN, HARD, GOOD or EASY")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("quality", mode="before")
    @classmethod
    def _parse_quality(cls, value):
        return parse_quality(value)


RawResponse = Union[ReviewResponse, tuple[str, QualityLike], dict]


def normalize_responses(responses: Iterable[RawResponse]) -> tuple[list[ReviewResponse], int]:
    """
    Validate raw responses.

    Accepts ReviewResponse objects, dicts ({"cardId": ..., "quality": ...})
    and (card_id, quality) pairs.

    Returns:
        Tuple of (valid responses in order, number of rejected entries)
    """
    valid: list[ReviewResponse] = []
    rejected = 0
    for response in responses:
        try:
            if isinstance(response, ReviewResponse):
                valid.append(response)
            elif isinstance(response, dict):
                valid.append(ReviewResponse.model_validate(response))
            elif isinstance(response, tuple) and len(response) == 2:
                valid.append(ReviewResponse(card_id=response[0], quality=response[1]))
            else:
                rejected += 1
        except ValidationError:
            rejected += 1
    return valid, rejected


# ---- Card Documents ----

class CardDocument(BaseModel):
    """
    Persisted card record.

    Field names follow the application's record shape (camelCase aliases);
    Python attribute names are snake_case.
    """
    id: str = Field(..., min_length=1)
    front: str
    back: str
    context: Optional[str] = None
    audio_reference: Optional[str] = Field(default=None, alias="audioReference")

    interval: int = INITIAL_INTERVAL
    repetitions: int = 0
    ease_factor: float = Field(default=INITIAL_EASE_FACTOR, alias="easeFactor")
    due_date: datetime = Field(..., alias="dueDate")
    last_reviewed: Optional[datetime] = Field(default=None, alias="lastReviewed")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("due_date", "last_reviewed")
    @classmethod
    def _timezone_aware(cls, value):
        return _ensure_utc(value)

    @classmethod
    def from_card(cls, card: Card) -> "CardDocument":
        return cls(
            id=card.id,
            front=card.front,
            back=card.back,
            context=card.context,
            audio_reference=card.audio_reference,
            interval=card.interval,
            repetitions=card.repetitions,
            ease_factor=card.ease_factor,
            due_date=card.due_date,
            last_reviewed=card.last_reviewed
        )

    def to_card(self) -> Card:
        return Card(
            id=self.id,
            front=self.front,
            back=self.back,
            context=self.context,
            audio_reference=self.audio_reference,
            interval=self.interval,
            repetitions=self.repetitions,
            ease_factor=self.ease_factor,
            due_date=self.due_date,
            last_reviewed=self.last_reviewed
        )

    def to_record(self) -> dict:
        """Dict in the persisted camelCase shape."""
        return self.model_dump(by_alias=True)


# ---- Vocabulary Import ----

class VocabularyItem(BaseModel):
    """A vocabulary entry to turn into a card (word -> front, translation -> back)."""
    word: str = Field(..., min_length=1, description="Target-language word or phrase")
    translation: str = Field(..., min_length=1, description="Translation shown on the back")
    context: Optional[str] = None
    audio_reference: Optional[str] = Field(default=None, alias="audioReference")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)
