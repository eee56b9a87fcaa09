"""
Exceptions raised by the review engine.
"""

from __future__ import annotations


class ReviewEngineError(Exception):
    """Base class for review engine errors."""


class InvalidQualityError(ReviewEngineError, ValueError):
    """A review quality outside the AGAIN/HARD/GOOD/EASY set."""


class CardStoreError(ReviewEngineError):
    """The card store could not be read or written."""


class CardNotFoundError(ReviewEngineError, KeyError):
    """No card with the given id is known for the user."""

    def __init__(self, card_id: str):
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card {self.card_id} not found"


class SessionStateError(ReviewEngineError):
    """A session operation was called in the wrong lifecycle state."""
