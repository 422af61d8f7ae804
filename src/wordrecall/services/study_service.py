"""Study service for building queues and applying quiz answers."""
import logging
from datetime import UTC, datetime
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from wordrecall.config import settings
from wordrecall.errors import NotAuthorized, StoreUnavailable
from wordrecall.models.base import as_utc
from wordrecall.models.models import StudySession, User, UserStarredWord
from wordrecall.models.progress_models import (
    LearningItem,
    MasteryState,
    ProgressRecord,
    StudySessionRequest,
)
from wordrecall.monitoring import (
    answers_recorded,
    items_mastered,
    queue_size,
    queues_built,
    store_errors,
    study_sessions,
)
from wordrecall.services.content_catalog import ContentCatalog
from wordrecall.services.mastery import compute_next_progress
from wordrecall.services.progress_store import ProgressStore
from wordrecall.services.queue_selector import select_queue
from wordrecall.services.stats_service import StatsService

logger = logging.getLogger(__name__)


class StudyService:
    """Runs a single user's study session, one answer at a time."""

    def __init__(self, db: Session, user_id: int):
        """Initialize the service for the acting user."""
        self.db = db
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ValueError(f"User {user_id} not found")
        self.user = user
        self.store = ProgressStore(db, user.id, is_admin=bool(user.is_admin))
        self.catalog = ContentCatalog(db, user.id)
        self.stats = StatsService(db)

    def build_queue(
        self, request: StudySessionRequest, now: Optional[datetime] = None
    ) -> List[LearningItem]:
        """Choose and order the items of a study session."""
        now = as_utc(now) if now else datetime.now(UTC)
        options = request.options
        if options.limit <= 0:
            return []
        fetch_limit = options.limit * settings.learning.candidate_multiplier

        candidates = self.catalog.list_items(
            request.wordbook_id, kind=request.kind, limit=fetch_limit
        )
        progress = self.store.get_many(request.user_id, [item.ref for item in candidates])
        queue = select_queue(candidates, progress, options, now)

        queues_built.labels(kind=request.kind.value).inc()
        queue_size.observe(len(queue))
        logger.info(
            "Built queue of %d %s items for user %d (wordbook %s, %d candidates)",
            len(queue),
            request.kind.value,
            request.user_id,
            request.wordbook_id,
            len(candidates),
        )
        return queue

    def submit_answer(
        self,
        user_id: int,
        item: LearningItem,
        correct: bool,
        now: Optional[datetime] = None,
    ) -> ProgressRecord:
        """Apply one answer to the item's progress and persist it.

        Store failures are logged and re-raised; the caller decides whether
        to retry the answer.
        """
        now = as_utc(now) if now else datetime.now(UTC)
        try:
            current = self.store.get_one(user_id, item.ref)
            new_record = compute_next_progress(current, correct, now)
            self.store.upsert(user_id, item.ref, new_record)
        except (StoreUnavailable, NotAuthorized) as e:
            logger.error("Failed to save answer for %s of user %d: %s", item.ref, user_id, e)
            raise

        is_new = current is None or current.state is MasteryState.UNSEEN
        # Progress is already committed, so stats failures are only logged
        try:
            self.stats.update_daily_stats(
                user_id,
                now.date(),
                new_words=1 if is_new else 0,
                review_words=0 if is_new else 1,
            )
        except (OperationalError, InterfaceError) as e:
            self.db.rollback()
            store_errors.labels(error_type=type(e).__name__).inc()
            logger.error("Failed to update daily stats of user %d: %s", user_id, e)

        kind = item.kind.value
        answers_recorded.labels(kind=kind, outcome="correct" if correct else "incorrect").inc()
        was_mastered = current is not None and current.state is MasteryState.MASTERED
        if new_record.state is MasteryState.MASTERED and not was_mastered:
            items_mastered.labels(kind=kind).inc()

        logger.info(
            "User %d answered %s %s: mastery %d -> %d, next review %s",
            user_id,
            item.ref,
            "correctly" if correct else "incorrectly",
            current.mastery if current else 0,
            new_record.mastery,
            new_record.next_review.isoformat(),
        )
        return new_record

    def record_session(
        self,
        user_id: int,
        mode: str,
        words_studied: int,
        correct_count: int,
        duration_minutes: int,
        wordbook_id: Optional[int] = None,
    ) -> StudySession:
        """Save a finished study session and add its minutes to today's stats."""
        if user_id != self.user.id and not self.user.is_admin:
            raise NotAuthorized(self.user.id, user_id)
        if correct_count > words_studied:
            raise ValueError("correct_count cannot exceed words_studied")

        session = StudySession(
            user_id=user_id,
            wordbook_id=wordbook_id,
            mode=mode,
            words_studied=words_studied,
            correct_count=correct_count,
            duration_minutes=duration_minutes,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        self.stats.update_daily_stats(user_id, study_minutes=duration_minutes)
        study_sessions.labels(mode=mode).inc()
        return session

    def toggle_star(self, user_id: int, word_id: int) -> bool:
        """Star a word, or unstar it if already starred. Returns the new state."""
        if user_id != self.user.id:
            raise NotAuthorized(self.user.id, user_id)
        starred = (
            self.db.query(UserStarredWord)
            .filter(and_(UserStarredWord.user_id == user_id, UserStarredWord.word_id == word_id))
            .first()
        )
        if starred:
            self.db.delete(starred)
            self.db.commit()
            return False

        self.db.add(UserStarredWord(user_id=user_id, word_id=word_id))
        self.db.commit()
        return True

    def get_starred_word_ids(self, user_id: int) -> List[int]:
        """Get IDs of the words a user has starred."""
        return [
            word_id
            for (word_id,) in self.db.query(UserStarredWord.word_id)
            .filter(UserStarredWord.user_id == user_id)
            .order_by(UserStarredWord.id)
            .all()
        ]
