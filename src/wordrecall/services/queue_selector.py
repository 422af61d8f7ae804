"""Ordering of learning items for study and review sessions."""
import logging
import random
from datetime import UTC, datetime
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from wordrecall.models.base import as_utc
from wordrecall.models.progress_models import (
    ItemRef,
    LearningItem,
    ProgressRecord,
    QueueOptions,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NEVER_ANSWERED = ProgressRecord()


def _sort_key(
    item: LearningItem,
    progress: ProgressRecord,
    options: QueueOptions,
    now: datetime,
) -> Tuple:
    """Build the tie-break cascade for one item; smaller sorts first."""
    due = 0 if options.include_review and progress.is_due(now) else 1
    unseen = 0 if progress.mastery == 0 else 1
    exam = -item.exam_priority if options.prioritize_exam_focus else 0
    if options.prioritize_high_frequency:
        frequency = (0 if item.is_high_frequency else 1, item.frequency_rank)
    else:
        frequency = (0, 0)
    return (due, unseen, exam, frequency)


def select_queue(
    candidates: Sequence[LearningItem],
    progress: Mapping[ItemRef, ProgressRecord],
    options: Optional[QueueOptions] = None,
    now: Optional[datetime] = None,
) -> List[LearningItem]:
    """Order candidates for a study session and keep the first ``limit``.

    Items due for review come first (when ``include_review``), then unseen
    items, then higher exam priority, then high-frequency words by ascending
    frequency rank. Remaining ties keep their input order.
    """
    options = options or QueueOptions()
    now = as_utc(now) if now else datetime.now(UTC)
    if not candidates or options.limit <= 0:
        return []

    # sorted() is stable, so equal keys keep the candidates' order
    ordered = sorted(
        candidates,
        key=lambda item: _sort_key(item, progress.get(item.ref, NEVER_ANSWERED), options, now),
    )
    queue = ordered[: options.limit]
    logger.debug(
        "Selected %d of %d candidates (limit %d)", len(queue), len(candidates), options.limit
    )
    return queue


def shuffle_items(items: Iterable[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return the items in uniformly random order.

    random.shuffle is a Fisher-Yates shuffle; the input is left untouched.
    """
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled


def build_choice_options(
    answer: str,
    pool: Iterable[str],
    count: int = 4,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Create multiple choice options: the answer plus distinct distractors."""
    rng = rng or random.Random()
    distractors = []
    for option in dict.fromkeys(pool):
        if option and option != answer:
            distractors.append(option)
    wrong_options = rng.sample(distractors, min(len(distractors), max(count - 1, 0)))
    return shuffle_items([answer] + wrong_options, rng)
