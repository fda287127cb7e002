"""Database models for learners and their call sessions.

This module defines SQLAlchemy ORM models for:
- Learners
- Call Sessions
- Session Turns
- Session Mistakes
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..core.clock import utcnow
from ..core.enums import CallChannel, SessionMode, SessionStatus, Speaker
from .base import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Learner(Base):
    """Learner account with running call totals."""
    __tablename__ = "learners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    phone_number = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    level = Column(String(20), default="beginner", nullable=False)
    total_calls = Column(Integer, default=0, nullable=False)
    total_call_duration = Column(Integer, default=0, nullable=False)  # seconds
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    sessions = relationship("CallSession", back_populates="owner", cascade="all, delete-orphan")


class CallSession(Base):
    """One conversation between a learner and the coach."""
    __tablename__ = "call_sessions"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    owner_id = Column(Integer, ForeignKey("learners.id", ondelete="CASCADE"), nullable=False, index=True)
    mode = Column(
        Enum(SessionMode, name="session_mode", values_callable=_enum_values),
        nullable=False,
        default=SessionMode.FREE_CONVERSATION,
    )
    channel = Column(
        Enum(CallChannel, name="call_channel", values_callable=_enum_values),
        nullable=False,
        default=CallChannel.VOICE,
    )
    status = Column(
        Enum(SessionStatus, name="session_status", values_callable=_enum_values),
        nullable=False,
        default=SessionStatus.OPEN,
    )
    start_time = Column(DateTime, default=utcnow, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    overall_score = Column(Float, nullable=True)  # 0 to 100
    feedback = Column(Text, nullable=True)

    # Relationships
    owner = relationship("Learner", back_populates="sessions")
    turns = relationship(
        "SessionTurn",
        back_populates="session",
        order_by="SessionTurn.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    mistakes = relationship(
        "SessionMistake",
        back_populates="session",
        order_by="SessionMistake.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_owner_start_time", "owner_id", "start_time"),
    )


class SessionTurn(Base):
    """A single utterance by the learner or the coach."""
    __tablename__ = "session_turns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(32), ForeignKey("call_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    speaker = Column(
        Enum(Speaker, name="speaker", values_callable=_enum_values),
        nullable=False,
    )
    text = Column(Text, nullable=False)
    has_correction = Column(Boolean, default=False, nullable=False)
    correction_original = Column(Text, nullable=True)
    correction_corrected = Column(Text, nullable=True)
    correction_explanation = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    session = relationship("CallSession", back_populates="turns")

    __table_args__ = (
        UniqueConstraint("session_id", "position", name="unique_turn_position"),
    )


class SessionMistake(Base):
    """A corrected language error tied to a learner turn."""
    __tablename__ = "session_mistakes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(32), ForeignKey("call_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    original = Column(Text, nullable=False)
    corrected = Column(Text, nullable=False)
    category = Column(String(32), default="grammar", nullable=False)
    context_utterance = Column(Text, nullable=False)
    occurred_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    session = relationship("CallSession", back_populates="mistakes")

    __table_args__ = (
        UniqueConstraint("session_id", "position", name="unique_mistake_position"),
    )
