"""Database models for the scheduling engine."""
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from wordladder.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """User model. Students point at the supervisor whose words they review."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    role = Column(String, nullable=False, default="student")  # student, supervisor
    supervisor_id = Column(String, ForeignKey("users.id"), nullable=True)
    timezone = Column(String, nullable=True)  # IANA name, e.g. "Europe/Kyiv"

    # Relationships
    supervisor = relationship("User", remote_side=[id])
    words = relationship("Word", back_populates="supervisor", cascade="all, delete")
    progress = relationship("WordProgress", back_populates="user", cascade="all, delete")


class Word(Base, TimestampMixin):
    """Vocabulary card owned by a supervisor."""

    __tablename__ = "words"

    id = Column(String, primary_key=True)
    supervisor_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    word = Column(String, nullable=False)
    definition = Column(String, nullable=False, default="")
    unit = Column(String, nullable=False, default="")
    lesson = Column(String, nullable=False, default="")
    image_url = Column(String, nullable=False, default="")
    options = Column(JSON, nullable=False, default=list)  # correct option plus distractors
    correct_option = Column(String, nullable=False)

    # Relationships
    supervisor = relationship("User", back_populates="words")
    progress = relationship("WordProgress", back_populates="word", cascade="all, delete")


class WordProgress(Base, TimestampMixin):
    """Per-student review state of one word."""

    __tablename__ = "word_progress"
    __table_args__ = (UniqueConstraint("user_id", "word_id", name="uq_word_progress_user_word"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(String, ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    strength = Column(Integer, nullable=False, default=0)  # -1 mastered
    next_review = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    user = relationship("User", back_populates="progress")
    word = relationship("Word", back_populates="progress")
