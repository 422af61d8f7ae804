"""Tests for study queue ordering."""
import random
from datetime import UTC, datetime, timedelta

import pytest

from wordrecall.models.progress_models import (
    ItemKind,
    LearningItem,
    ProgressRecord,
    QueueOptions,
)
from wordrecall.services.queue_selector import (
    build_choice_options,
    select_queue,
    shuffle_items,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
YESTERDAY = NOW - timedelta(days=1)
TOMORROW = NOW + timedelta(days=1)


def make_item(item_id: int, **kwargs) -> LearningItem:
    """Create a word item with the given ranking attributes."""
    values = {"wordbook_id": 1, "text": f"word{item_id}", "meaning": f"meaning{item_id}"}
    values.update(kwargs)
    return LearningItem(id=item_id, **values)


def test_unseen_item_ranks_before_studied_one() -> None:
    """An unseen item beats a studied one even with lower exam priority."""
    w1 = make_item(1, exam_priority=90, frequency_rank=500)
    w2 = make_item(2, exam_priority=10, frequency_rank=1)
    progress = {w1.ref: ProgressRecord(mastery=50, review_count=4, correct_count=3)}
    options = QueueOptions(include_review=False, prioritize_exam_focus=True)

    assert select_queue([w1, w2], progress, options, NOW) == [w2, w1]


def test_due_item_ranks_before_unseen_item() -> None:
    """Due reviews come first regardless of exam priority or frequency."""
    due = make_item(1, exam_priority=0, frequency_rank=9000)
    unseen = make_item(2, exam_priority=100, frequency_rank=1, is_high_frequency=True)
    progress = {
        due.ref: ProgressRecord(mastery=30, review_count=2, correct_count=2, next_review=YESTERDAY)
    }

    assert select_queue([unseen, due], progress, QueueOptions(), NOW) == [due, unseen]


def test_due_items_not_promoted_without_review() -> None:
    """Without include_review the unseen rule decides."""
    due = make_item(1)
    unseen = make_item(2)
    progress = {
        due.ref: ProgressRecord(mastery=30, review_count=2, correct_count=2, next_review=YESTERDAY)
    }
    options = QueueOptions(include_review=False)

    assert select_queue([due, unseen], progress, options, NOW) == [unseen, due]


def test_review_due_exactly_now_counts_as_due() -> None:
    """next_review equal to now is due."""
    due = make_item(1)
    later = make_item(2)
    progress = {
        due.ref: ProgressRecord(mastery=20, review_count=1, correct_count=1, next_review=NOW),
        later.ref: ProgressRecord(mastery=20, review_count=1, correct_count=1, next_review=TOMORROW),
    }

    assert select_queue([later, due], progress, QueueOptions(), NOW) == [due, later]


def test_exam_priority_descending() -> None:
    """Higher exam priority sorts first among equally unseen items."""
    low = make_item(1, exam_priority=10)
    high = make_item(2, exam_priority=80)
    mid = make_item(3, exam_priority=50)

    assert select_queue([low, high, mid], {}, QueueOptions(), NOW) == [high, mid, low]


def test_exam_priority_ignored_when_disabled() -> None:
    """Without exam focus the frequency rules decide."""
    exam = make_item(1, exam_priority=100, frequency_rank=800)
    common = make_item(2, exam_priority=0, frequency_rank=5)
    options = QueueOptions(prioritize_exam_focus=False)

    assert select_queue([exam, common], {}, options, NOW) == [common, exam]


def test_high_frequency_flag_then_rank() -> None:
    """High-frequency words come first, then lower frequency ranks."""
    rare = make_item(1, frequency_rank=10)
    flagged = make_item(2, frequency_rank=300, is_high_frequency=True)
    common = make_item(3, frequency_rank=2)

    assert select_queue([rare, flagged, common], {}, QueueOptions(), NOW) == [flagged, common, rare]


def test_input_order_kept_when_all_rules_disabled() -> None:
    """Ties preserve the candidates' order."""
    items = [make_item(i, exam_priority=i * 10, frequency_rank=100 - i) for i in range(5)]
    options = QueueOptions(prioritize_exam_focus=False, prioritize_high_frequency=False)

    assert select_queue(items, {}, options, NOW) == items


def test_limit_takes_prefix() -> None:
    """Only the first limit items are returned."""
    items = [make_item(i, exam_priority=i) for i in range(10)]

    queue = select_queue(items, {}, QueueOptions(limit=3), NOW)

    assert [item.id for item in queue] == [9, 8, 7]


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_returns_nothing(limit: int) -> None:
    """A limit below one yields an empty queue."""
    assert select_queue([make_item(1)], {}, QueueOptions(limit=limit), NOW) == []


def test_empty_candidates() -> None:
    """No candidates give an empty queue."""
    assert select_queue([], {}, QueueOptions(), NOW) == []


def test_ordering_is_repeatable() -> None:
    """The same inputs always give the same order."""
    rng = random.Random(7)
    items = [
        make_item(
            i,
            exam_priority=rng.choice([0, 50, 100]),
            frequency_rank=rng.randint(1, 20),
            is_high_frequency=rng.random() < 0.3,
        )
        for i in range(40)
    ]
    progress = {
        item.ref: ProgressRecord(
            mastery=rng.choice([0, 20, 60]),
            review_count=1,
            next_review=rng.choice([YESTERDAY, TOMORROW, None]),
        )
        for item in items[::2]
    }

    first = select_queue(items, progress, QueueOptions(limit=25), NOW)
    second = select_queue(list(items), dict(progress), QueueOptions(limit=25), NOW)

    assert first == second


def test_word_and_meaning_progress_do_not_mix() -> None:
    """Progress is looked up by kind and id together."""
    word = make_item(1)
    meaning = make_item(1, kind=ItemKind.MEANING)
    progress = {word.ref: ProgressRecord(mastery=40, review_count=2, correct_count=2)}

    assert select_queue([word, meaning], progress, QueueOptions(), NOW) == [meaning, word]


def test_shuffle_items_keeps_elements() -> None:
    """Shuffling returns a permutation and leaves the input alone."""
    items = list(range(20))

    shuffled = shuffle_items(items, random.Random(3))

    assert sorted(shuffled) == items
    assert items == list(range(20))


def test_build_choice_options() -> None:
    """Options hold the answer and distinct distractors."""
    pool = ["apple", "pear", "pear", "plum", "fig", "kiwi", "apple"]

    options = build_choice_options("apple", pool, count=4, rng=random.Random(1))

    assert len(options) == 4
    assert options.count("apple") == 1
    assert len(set(options)) == 4


def test_build_choice_options_with_small_pool() -> None:
    """A small pool gives fewer options instead of failing."""
    options = build_choice_options("apple", ["pear"], count=4, rng=random.Random(1))

    assert sorted(options) == ["apple", "pear"]


if __name__ == "__main__":
    pytest.main([__file__])
