"""
MongoDB Card Store

Stores one document per (user, card) in the srs_cards collection. Documents
use the CardDocument shape (camelCase keys) plus a userId field.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Iterable, Optional

from dotenv import load_dotenv
from pymongo import MongoClient, ReplaceOne
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from review_engine.errors import CardStoreError
from review_engine.schemas import CardDocument
from review_engine.sm2.card import Card

if TYPE_CHECKING:
    from review_engine.session_builders.session_types import SessionStats

# Load environment
load_dotenv()

# Configuration
DEFAULT_DB_NAME = "srs"
CARDS_COLLECTION = "srs_cards"
SESSIONS_COLLECTION = "review_sessions"


def get_database(mongo_uri: Optional[str] = None, db_name: Optional[str] = None):
    """
    Connect to the MongoDB database named by SRS_MONGO_DB.

    Returns:
        pymongo Database object
    """
    if mongo_uri is None:
        mongo_uri = os.getenv("SRS_MONGO_URI")
    if not mongo_uri:
        raise ValueError("SRS_MONGO_URI not found in environment variables")
    if db_name is None:
        db_name = os.getenv("SRS_MONGO_DB", DEFAULT_DB_NAME)

    client = MongoClient(
        mongo_uri,
        maxPoolSize=10,  # Connection pool size
        minPoolSize=1,   # Keep at least 1 connection alive
        maxIdleTimeMS=60000,  # Keep connections alive for 60 seconds
        tz_aware=True
    )
    return client[db_name]


def _document_id(user_id: str, card_id: str) -> str:
    return f"{user_id}:{card_id}"


def card_to_document(user_id: str, card: Card) -> dict:
    document = CardDocument.from_card(card).to_record()
    document["_id"] = _document_id(user_id, card.id)
    document["userId"] = user_id
    return document


def document_to_card(document: dict) -> Card:
    return CardDocument.model_validate(document).to_card()


class MongoCardStore:
    """
    Card store backed by a MongoDB collection.

    Writes replace the whole document with upsert, keyed by user and card id.
    Any PyMongoError is re-raised as CardStoreError.
    """

    def __init__(self, cards: Collection, sessions: Optional[Collection] = None):
        self.cards = cards
        self.sessions = sessions

    @classmethod
    def from_env(cls) -> "MongoCardStore":
        db = get_database()
        return cls(db[CARDS_COLLECTION], db[SESSIONS_COLLECTION])

    def get_all(self, user_id: str) -> list[Card]:
        try:
            documents = list(self.cards.find({"userId": user_id}))
        except PyMongoError as exc:
            raise CardStoreError(f"Failed to load cards for {user_id}: {exc}") from exc
        return [document_to_card(d) for d in documents]

    def get(self, user_id: str, card_id: str) -> Optional[Card]:
        try:
            document = self.cards.find_one({"_id": _document_id(user_id, card_id)})
        except PyMongoError as exc:
            raise CardStoreError(f"Failed to load card {card_id}: {exc}") from exc
        if document is None:
            return None
        return document_to_card(document)

    def put(self, user_id: str, card: Card) -> None:
        document = card_to_document(user_id, card)
        try:
            self.cards.replace_one({"_id": document["_id"]}, document, upsert=True)
        except PyMongoError as exc:
            raise CardStoreError(f"Failed to save card {card.id}: {exc}") from exc

    def put_many(self, user_id: str, cards: Iterable[Card]) -> None:
        operations = []
        for card in cards:
            document = card_to_document(user_id, card)
            operations.append(ReplaceOne({"_id": document["_id"]}, document, upsert=True))
        if not operations:
            return
        try:
            self.cards.bulk_write(operations, ordered=False)
        except PyMongoError as exc:
            raise CardStoreError(f"Failed to save {len(operations)} card(s): {exc}") from exc

    def record_session(self, user_id: str, stats: "SessionStats") -> None:
        if self.sessions is None:
            return
        document = {
            "_id": stats.session_id,
            "userId": user_id,
            "sessionStart": stats.session_start,
            "completedAt": stats.completed_at,
            "durationMs": stats.duration_ms,
            "cardsReviewed": stats.cards_reviewed,
            "accuracy": stats.accuracy,
            "averageQuality": stats.average_quality,
            "rejected": stats.rejected,
        }
        try:
            self.sessions.replace_one({"_id": stats.session_id}, document, upsert=True)
        except PyMongoError as exc:
            raise CardStoreError(f"Failed to record session {stats.session_id}: {exc}") from exc
