"""
Card Store - persistence interface for SM-2 cards

The engine reads and writes cards through this interface only. Writes are
idempotent per card id, so callers may safely retry them.

Implementations:
- InMemoryCardStore (this module): dict-backed, used for tests and caching
- SqlCardStore (database module): SQLAlchemy
- MongoCardStore (mongo_store module): MongoDB documents
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable, Optional, Protocol

from review_engine.errors import CardStoreError
from review_engine.sm2.card import Card

if TYPE_CHECKING:
    from review_engine.session_builders.session_types import SessionStats


class CardStore(Protocol):
    """
    Durable mapping card id -> Card, scoped by user.

    Backend failures surface as CardStoreError.
    """

    def get_all(self, user_id: str) -> list[Card]:
        ...

    def get(self, user_id: str, card_id: str) -> Optional[Card]:
        ...

    def put(self, user_id: str, card: Card) -> None:
        ...

    def put_many(self, user_id: str, cards: Iterable[Card]) -> None:
        ...

    def record_session(self, user_id: str, stats: "SessionStats") -> None:
        ...


class InMemoryCardStore:
    """
    Process-local card store.

    Cards are immutable, so they are stored without copying.
    """

    def __init__(self, cards: Optional[dict[str, list[Card]]] = None):
        self._cards: dict[str, dict[str, Card]] = {}
        self.sessions: dict[str, list["SessionStats"]] = {}
        for user_id, user_cards in (cards or {}).items():
            self.put_many(user_id, user_cards)

    def get_all(self, user_id: str) -> list[Card]:
        return list(self._cards.get(user_id, {}).values())

    def get(self, user_id: str, card_id: str) -> Optional[Card]:
        return self._cards.get(user_id, {}).get(card_id)

    def put(self, user_id: str, card: Card) -> None:
        self._cards.setdefault(user_id, {})[card.id] = card

    def put_many(self, user_id: str, cards: Iterable[Card]) -> None:
        user_cards = self._cards.setdefault(user_id, {})
        for card in cards:
            user_cards[card.id] = card

    def record_session(self, user_id: str, stats: "SessionStats") -> None:
        self.sessions.setdefault(user_id, []).append(stats)


__all__ = ["CardStore", "CardStoreError", "InMemoryCardStore"]
