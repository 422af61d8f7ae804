"""Mastery updates and review scheduling after a quiz answer."""
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from wordrecall.config import MASTERY_BAND_WIDTH, MAX_MASTERY, settings
from wordrecall.models.base import as_utc
from wordrecall.models.progress_models import MasteryDelta, ProgressRecord

logger = logging.getLogger(__name__)


def clamp(value: int, lower: int = 0, upper: int = MAX_MASTERY) -> int:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def default_delta() -> MasteryDelta:
    """The reward pair configured in settings."""
    return MasteryDelta(
        on_correct=settings.learning.mastery_on_correct,
        on_incorrect=settings.learning.mastery_on_incorrect,
    )


def review_interval_days(mastery: int, intervals: Optional[Sequence[int]] = None) -> int:
    """Days until the next review for the given mastery.

    Each band of 20 mastery points moves one step along the interval table;
    mastery beyond the last band stays on the last interval.
    """
    intervals = intervals or settings.learning.review_intervals
    index = min(clamp(mastery) // MASTERY_BAND_WIDTH, len(intervals) - 1)
    return intervals[index]


def next_review_at(
    mastery: int, now: datetime, intervals: Optional[Sequence[int]] = None
) -> datetime:
    """Calculate the next review time for the given mastery."""
    return now + timedelta(days=review_interval_days(mastery, intervals))


def normalize_record(record: ProgressRecord) -> ProgressRecord:
    """Repair a stored record that violates its invariants.

    Mastery is clamped into 0-100, negative counters become 0 and
    correct_count is capped at review_count.
    """
    mastery = clamp(record.mastery)
    review_count = max(0, record.review_count)
    correct_count = clamp(record.correct_count, 0, review_count)

    if (mastery, review_count, correct_count) == (
        record.mastery,
        record.review_count,
        record.correct_count,
    ):
        return record

    logger.warning(
        "Invalid progress record %s repaired to mastery=%d review_count=%d correct_count=%d",
        record,
        mastery,
        review_count,
        correct_count,
    )
    return replace(
        record,
        mastery=mastery,
        review_count=review_count,
        correct_count=correct_count,
    )


def compute_next_progress(
    current: Optional[ProgressRecord],
    correct: bool,
    now: datetime,
    delta: Optional[MasteryDelta] = None,
    intervals: Optional[Sequence[int]] = None,
) -> ProgressRecord:
    """Derive the next progress state from the current one and one answer.

    Args:
        current: The stored record, or None if the item was never answered.
        correct: Whether the answer was correct.
        now: Evaluation time; becomes last_reviewed. Naive times are read as UTC.
        delta: Mastery reward pair. Defaults to the configured pair.
        intervals: Ascending day offsets indexed by mastery band.

    Returns:
        A new ProgressRecord. ``current`` is never modified.
    """
    delta = delta or default_delta()
    now = as_utc(now)
    current = normalize_record(current) if current is not None else ProgressRecord()

    change = delta.on_correct if correct else delta.on_incorrect
    new_mastery = clamp(current.mastery + change)

    return ProgressRecord(
        mastery=new_mastery,
        review_count=current.review_count + 1,
        correct_count=current.correct_count + (1 if correct else 0),
        last_reviewed=now,
        next_review=next_review_at(new_mastery, now, intervals),
    )
