"""Database models for wordbooks, words and study progress."""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from wordrecall.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=True)
    is_admin = Column(Boolean, default=False)

    # Relationships
    word_progress = relationship("UserWordProgress", back_populates="user")
    meaning_progress = relationship("UserMeaningProgress", back_populates="user")
    daily_stats = relationship("UserDailyStats", back_populates="user")
    study_sessions = relationship("StudySession", back_populates="user")


class Wordbook(Base, TimestampMixin):
    """A collection of words, e.g. an exam vocabulary list."""

    __tablename__ = "wordbooks"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    icon = Column(String, default="📚")
    category = Column(String, nullable=False, default="exam")  # exam, daily, business, academic, custom
    level = Column(String)
    is_active = Column(Boolean, default=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    words = relationship("Word", back_populates="wordbook", order_by="Word.sort_order")


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    wordbook_id = Column(Integer, ForeignKey("wordbooks.id"), nullable=False, index=True)
    word = Column(String, nullable=False)
    phonetic = Column(String)
    meaning = Column(String, nullable=False)
    example = Column(Text)
    example_translation = Column(Text)
    audio_url = Column(String)
    difficulty = Column(String, default="medium")  # easy, medium, hard
    sort_order = Column(Integer, default=0)
    exam_priority = Column(Integer, default=0)  # 0-100
    frequency_rank = Column(Integer)  # lower = more frequent
    is_high_frequency = Column(Boolean, default=False)

    # Relationships
    wordbook = relationship("Wordbook", back_populates="words")
    meanings = relationship("WordMeaning", back_populates="word")


class WordMeaning(Base, TimestampMixin):
    """A specific sense of a word."""

    __tablename__ = "word_meanings"

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False, index=True)
    meaning = Column(String, nullable=False)
    meaning_order = Column(Integer, default=0)
    frequency_score = Column(Float, default=0.0)
    is_primary = Column(Boolean, default=False)
    is_exam_focus = Column(Boolean, default=False)
    part_of_speech = Column(String)
    example = Column(Text)
    example_translation = Column(Text)
    usage_note = Column(Text)

    # Relationships
    word = relationship("Word", back_populates="meanings")


class UserWordProgress(Base, TimestampMixin):
    """Per-user learning state of a word."""

    __tablename__ = "user_word_progress"
    __table_args__ = (UniqueConstraint("user_id", "word_id"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False)
    mastery = Column(Integer, nullable=False, default=0)  # 0-100
    review_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    last_reviewed = Column(DateTime(timezone=True))
    next_review = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="word_progress")
    word = relationship("Word")


class UserMeaningProgress(Base, TimestampMixin):
    """Per-user learning state of a single word meaning."""

    __tablename__ = "user_meaning_progress"
    __table_args__ = (UniqueConstraint("user_id", "meaning_id"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    meaning_id = Column(Integer, ForeignKey("word_meanings.id"), nullable=False)
    mastery = Column(Integer, nullable=False, default=0)  # 0-100
    review_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    last_reviewed = Column(DateTime(timezone=True))
    next_review = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="meaning_progress")
    meaning = relationship("WordMeaning")


class UserDailyStats(Base, TimestampMixin):
    """Aggregated study activity of a user for one calendar day."""

    __tablename__ = "user_daily_stats"
    __table_args__ = (UniqueConstraint("user_id", "date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    new_words = Column(Integer, default=0)
    review_words = Column(Integer, default=0)
    study_minutes = Column(Integer, default=0)

    # Relationships
    user = relationship("User", back_populates="daily_stats")


class StudySession(Base, TimestampMixin):
    """A finished study session."""

    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    wordbook_id = Column(Integer, ForeignKey("wordbooks.id"), nullable=True)
    mode = Column(String, nullable=False)  # flashcard, spelling, listening, ...
    words_studied = Column(Integer, default=0)
    correct_count = Column(Integer, default=0)
    duration_minutes = Column(Integer, default=0)

    # Relationships
    user = relationship("User", back_populates="study_sessions")


class UserStarredWord(Base, TimestampMixin):
    """A word bookmarked by a user."""

    __tablename__ = "user_starred_words"
    __table_args__ = (UniqueConstraint("user_id", "word_id"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False)
