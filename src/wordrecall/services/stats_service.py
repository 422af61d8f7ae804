"""Service for progress statistics and daily activity."""
import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from wordrecall.config import settings
from wordrecall.models.base import as_utc
from wordrecall.models.models import UserDailyStats, UserWordProgress, Word

logger = logging.getLogger(__name__)

WEEK_DAYS = 7


@dataclass
class UserStats:
    """Dashboard statistics of a user."""
    total_words: int = 0
    mastered_words: int = 0
    learning_words: int = 0
    streak: int = 0
    total_study_days: int = 0
    today_new_words: int = 0
    today_review_words: int = 0
    today_study_minutes: int = 0
    weekly_progress: List[int] = field(default_factory=lambda: [0] * WEEK_DAYS)


@dataclass
class WordbookProgress:
    """Progress of a user through one wordbook."""
    wordbook_id: int
    word_count: int = 0
    mastered_count: int = 0
    learning_count: int = 0
    new_count: int = 0
    progress: int = 0  # percent of mastered words


@dataclass
class ReviewSummary:
    """Numbers shown on the review page."""
    due_count: int = 0
    urgent_count: int = 0
    mastered_count: int = 0


def count_streak(study_days: List[date], today: date) -> int:
    """Count consecutive study days ending today.

    A streak whose last day is yesterday still counts, so it does not break
    before the user studies today.
    """
    days = set(study_days)
    current = today if today in days else today - timedelta(days=1)
    streak = 0
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


class StatsService:
    """Service for progress statistics and daily activity."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def _today(self) -> date:
        return datetime.now(UTC).date()

    def get_daily_stats(self, user_id: int, day: date) -> Optional[UserDailyStats]:
        """Get the activity row of a user for one day."""
        return (
            self.db.query(UserDailyStats)
            .filter(and_(UserDailyStats.user_id == user_id, UserDailyStats.date == day))
            .first()
        )

    def update_daily_stats(
        self,
        user_id: int,
        day: Optional[date] = None,
        new_words: int = 0,
        review_words: int = 0,
        study_minutes: int = 0,
    ) -> UserDailyStats:
        """Add activity to a user's row for the day, creating it if needed."""
        day = day or self._today()
        stats = self.get_daily_stats(user_id, day)
        if stats is None:
            stats = UserDailyStats(
                user_id=user_id,
                date=day,
                new_words=new_words,
                review_words=review_words,
                study_minutes=study_minutes,
            )
            self.db.add(stats)
        else:
            stats.new_words = (stats.new_words or 0) + new_words
            stats.review_words = (stats.review_words or 0) + review_words
            stats.study_minutes = (stats.study_minutes or 0) + study_minutes
        self.db.commit()
        return stats

    def get_user_stats(self, user_id: int, today: Optional[date] = None) -> UserStats:
        """Collect dashboard statistics for a user."""
        today = today or self._today()
        mastered_threshold = settings.learning.mastered_threshold

        masteries = [
            mastery or 0
            for (mastery,) in self.db.query(UserWordProgress.mastery)
            .filter(UserWordProgress.user_id == user_id)
            .all()
        ]
        stats = UserStats(
            total_words=len(masteries),
            mastered_words=sum(1 for m in masteries if m >= mastered_threshold),
            learning_words=sum(1 for m in masteries if 0 < m < mastered_threshold),
        )

        daily_rows = (
            self.db.query(UserDailyStats)
            .filter(UserDailyStats.user_id == user_id)
            .order_by(UserDailyStats.date.desc())
            .all()
        )
        for row in daily_rows:
            offset = (today - row.date).days
            if row.date == today:
                stats.today_new_words = row.new_words or 0
                stats.today_review_words = row.review_words or 0
                stats.today_study_minutes = row.study_minutes or 0
            if 0 <= offset < WEEK_DAYS:
                stats.weekly_progress[WEEK_DAYS - 1 - offset] = (row.new_words or 0) + (
                    row.review_words or 0
                )

        stats.total_study_days = len(daily_rows)
        stats.streak = count_streak([row.date for row in daily_rows], today)
        return stats

    def get_wordbook_progress(self, user_id: int, wordbook_id: int) -> WordbookProgress:
        """Count mastered, learning and new words of a wordbook for a user."""
        mastered_threshold = settings.learning.mastered_threshold
        rows = (
            self.db.query(Word.id, UserWordProgress.mastery)
            .outerjoin(
                UserWordProgress,
                and_(
                    UserWordProgress.word_id == Word.id,
                    UserWordProgress.user_id == user_id,
                ),
            )
            .filter(Word.wordbook_id == wordbook_id)
            .all()
        )

        result = WordbookProgress(wordbook_id=wordbook_id, word_count=len(rows))
        for _, mastery in rows:
            mastery = mastery or 0
            if mastery >= mastered_threshold:
                result.mastered_count += 1
            elif mastery > 0:
                result.learning_count += 1
            else:
                result.new_count += 1

        if result.word_count:
            result.progress = round(result.mastered_count / result.word_count * 100)
        return result

    def get_review_summary(self, user_id: int, now: Optional[datetime] = None) -> ReviewSummary:
        """Count due, urgent and mastered words of a user."""
        now = now or datetime.now(UTC)
        mastered_threshold = settings.learning.mastered_threshold
        urgent_threshold = settings.learning.urgent_threshold

        summary = ReviewSummary()
        rows = (
            self.db.query(UserWordProgress.mastery, UserWordProgress.next_review)
            .filter(UserWordProgress.user_id == user_id)
            .all()
        )
        for mastery, next_review in rows:
            mastery = mastery or 0
            next_review = as_utc(next_review)
            if next_review is not None and next_review <= now:
                summary.due_count += 1
            if mastery >= mastered_threshold:
                summary.mastered_count += 1
            elif mastery < urgent_threshold:
                summary.urgent_count += 1
        logger.debug("Review summary for user %d: %s", user_id, summary)
        return summary
