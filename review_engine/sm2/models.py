"""
SQLAlchemy ORM Models for the SM-2 Card Store

Defines CardRecord and SessionRecord models for relational persistence.
"""

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CardRecord(Base):
    """
    Persistent SM-2 state and content for a single card.
    """
    __tablename__ = 'srs_cards'

    # Primary key: composite of user_id and card_id
    user_id = Column(String(255), primary_key=True, nullable=False)
    card_id = Column(String(255), primary_key=True, nullable=False)

    # Content
    front = Column(Text, nullable=False)
    back = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    audio_reference = Column(String(1024), nullable=True)

    # Scheduling state
    interval = Column(Integer, nullable=False)  # days, >= 1
    repetitions = Column(Integer, nullable=False)  # consecutive correct reviews
    ease_factor = Column(Float, nullable=False)  # >= 1.3
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    last_reviewed = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<CardRecord({self.user_id}, {self.card_id}, interval={self.interval})>"


class SessionRecord(Base):
    """
    Aggregate statistics of one completed review session.
    """
    __tablename__ = 'review_sessions'

    session_id = Column(String(64), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)

    session_start = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False)
    duration_ms = Column(Integer, nullable=False)

    cards_reviewed = Column(Integer, nullable=False)
    accuracy = Column(Float, nullable=False)  # 0-1
    average_quality = Column(Float, nullable=False)  # 0-5
    rejected = Column(Integer, nullable=False, default=0)  # invalid responses skipped

    def __repr__(self):
        return f"<SessionRecord({self.session_id}, reviewed={self.cards_reviewed})>"
