"""
Database - SQL Card Store

Handles all relational database operations for cards and session stats.
Uses SQLAlchemy ORM (Postgres in production, SQLite for local use and tests).

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.
"""

from __future__ import annotations
import os
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from review_engine.errors import CardStoreError
from review_engine.sm2.card import Card
from review_engine.sm2.models import Base, CardRecord, SessionRecord

if TYPE_CHECKING:
    from review_engine.session_builders.session_types import SessionStats

# Load environment
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///srs_cards.db"
PROD_DB_NAME = "srs_cards"
TEST_DB_NAME = "test_srs_cards"


# ---- Configuration ----

def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    Reads SRS_DATABASE_URL (falls back to a local SQLite file). In test mode
    the production database name is replaced with the test database name.

    Returns:
        SQLAlchemy database URL
    """
    base_url = os.getenv("SRS_DATABASE_URL", DEFAULT_DATABASE_URL)

    if is_test_mode():
        return base_url.replace(PROD_DB_NAME, TEST_DB_NAME)

    return base_url


def get_engine(db_url: Optional[str] = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    Server databases get a connection pool; SQLite uses SQLAlchemy's default.

    Args:
        db_url: Database URL (defaults to get_database_url())

    Returns:
        SQLAlchemy Engine instance
    """
    if db_url is None:
        db_url = get_database_url()

    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False)

    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def init_db(engine: Engine):
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates tables if they don't exist.
    """
    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()

    if 'srs_cards' not in existing_tables or 'review_sessions' not in existing_tables:
        Base.metadata.create_all(engine)
        return

    # If tables exist, ensure the per-user schema is in place
    card_columns = {col["name"] for col in inspector.get_columns("srs_cards")}
    if "user_id" not in card_columns:
        raise RuntimeError(
            "srs_cards table is missing the user_id column. "
            "Please reset or migrate the database to the per-user schema."
        )


def reset_db(engine: Engine):
    """
    DANGEROUS: Delete all data and recreate tables.

    Only use this for testing or when you want to start fresh.
    All cards and session history will be lost!
    """
    Base.metadata.drop_all(engine)
    print("[SRS STORE] All tables dropped")

    init_db(engine)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite returns naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _record_to_card(record: CardRecord) -> Card:
    return Card(
        id=record.card_id,
        front=record.front,
        back=record.back,
        context=record.context,
        audio_reference=record.audio_reference,
        interval=record.interval,
        repetitions=record.repetitions,
        ease_factor=record.ease_factor,
        due_date=_as_utc(record.due_date),
        last_reviewed=_as_utc(record.last_reviewed)
    )


def _card_to_record(user_id: str, card: Card) -> CardRecord:
    return CardRecord(
        user_id=user_id,
        card_id=card.id,
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


class SqlCardStore:
    """
    Card store backed by a relational database.

    Writes are upserts keyed by (user_id, card_id), so repeating a write is
    harmless. Any SQLAlchemyError is re-raised as CardStoreError.
    """

    def __init__(self, engine: Optional[Engine] = None, create_tables: bool = True):
        self.engine = engine if engine is not None else get_engine()
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        if create_tables:
            try:
                init_db(self.engine)
            except SQLAlchemyError as exc:
                raise CardStoreError(f"Could not initialize card store: {exc}") from exc

    @classmethod
    def from_url(cls, db_url: str) -> "SqlCardStore":
        return cls(get_engine(db_url))

    def get_session(self) -> Session:
        return self._session_factory()

    def get_all(self, user_id: str) -> list[Card]:
        """
        Load all cards for a user, soonest due first.
        """
        session = self.get_session()
        try:
            records = session.query(CardRecord).filter(
                CardRecord.user_id == user_id
            ).order_by(CardRecord.due_date.asc()).all()
            return [_record_to_card(r) for r in records]
        except SQLAlchemyError as exc:
            raise CardStoreError(f"Failed to load cards for {user_id}: {exc}") from exc
        finally:
            session.close()

    def get(self, user_id: str, card_id: str) -> Optional[Card]:
        """
        Load one card.

        Returns:
            Card if found, None otherwise
        """
        session = self.get_session()
        try:
            record = session.get(CardRecord, (user_id, card_id))
            if record is None:
                return None
            return _record_to_card(record)
        except SQLAlchemyError as exc:
            raise CardStoreError(f"Failed to load card {card_id}: {exc}") from exc
        finally:
            session.close()

    def put(self, user_id: str, card: Card) -> None:
        """Insert or update a single card."""
        self.put_many(user_id, [card])

    def put_many(self, user_id: str, cards: Iterable[Card]) -> None:
        """
        Insert or update several cards in a single transaction.
        """
        cards = list(cards)
        if not cards:
            return

        session = self.get_session()
        try:
            for card in cards:
                session.merge(_card_to_record(user_id, card))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise CardStoreError(f"Failed to save {len(cards)} card(s): {exc}") from exc
        finally:
            session.close()

    def record_session(self, user_id: str, stats: "SessionStats") -> None:
        """Store aggregate statistics of a completed session."""
        session = self.get_session()
        try:
            session.merge(SessionRecord(
                session_id=stats.session_id,
                user_id=user_id,
                session_start=stats.session_start,
                completed_at=stats.completed_at,
                duration_ms=stats.duration_ms,
                cards_reviewed=stats.cards_reviewed,
                accuracy=stats.accuracy,
                average_quality=stats.average_quality,
                rejected=stats.rejected
            ))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise CardStoreError(f"Failed to record session {stats.session_id}: {exc}") from exc
        finally:
            session.close()

    def get_recent_sessions(self, user_id: str, limit: int = 10) -> list[dict]:
        """
        Get recent session statistics (newest first).
        """
        session = self.get_session()
        try:
            records = session.query(SessionRecord).filter(
                SessionRecord.user_id == user_id
            ).order_by(
                SessionRecord.completed_at.desc()
            ).limit(limit).all()

            return [
                {
                    "session_id": r.session_id,
                    "session_start": _as_utc(r.session_start),
                    "completed_at": _as_utc(r.completed_at),
                    "duration_ms": r.duration_ms,
                    "cards_reviewed": r.cards_reviewed,
                    "accuracy": r.accuracy,
                    "average_quality": r.average_quality,
                    "rejected": r.rejected,
                }
                for r in records
            ]
        except SQLAlchemyError as exc:
            raise CardStoreError(f"Failed to load sessions for {user_id}: {exc}") from exc
        finally:
            session.close()
