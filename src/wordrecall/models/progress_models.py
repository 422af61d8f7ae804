"""Value types shared by the mastery updater and the study queue."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from wordrecall.config import settings
from wordrecall.errors import InvalidRecord
from wordrecall.models.base import as_utc

# Rank used for words whose frequency was never authored
UNRANKED = 999999


class ItemKind(Enum):
    """What a learning item refers to."""
    WORD = "word"  # A whole word
    MEANING = "meaning"  # One sense of a word


class MasteryState(Enum):
    """Learning state derived from mastery."""
    UNSEEN = "unseen"
    LEARNING = "learning"
    MASTERED = "mastered"


def mastery_state(mastery: int) -> MasteryState:
    """Derive the learning state from a mastery score."""
    if mastery <= 0:
        return MasteryState.UNSEEN
    if mastery >= settings.learning.mastered_threshold:
        return MasteryState.MASTERED
    return MasteryState.LEARNING


@dataclass(frozen=True)
class ItemRef:
    """Identifies a word or a meaning."""
    kind: ItemKind
    id: int

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class LearningItem:
    """The unit a user is quizzed on."""
    id: int
    wordbook_id: int
    text: str
    meaning: str
    kind: ItemKind = ItemKind.WORD
    example: Optional[str] = None
    example_translation: Optional[str] = None
    phonetic: Optional[str] = None
    exam_priority: int = 0
    frequency_rank: int = UNRANKED
    is_high_frequency: bool = False
    word_id: Optional[int] = None  # parent word of a meaning item

    @property
    def ref(self) -> ItemRef:
        return ItemRef(self.kind, self.id)


@dataclass(frozen=True)
class ProgressRecord:
    """Per-user, per-item learning state.

    The defaults describe an item that was never answered.
    """
    mastery: int = 0
    review_count: int = 0
    correct_count: int = 0
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None

    @property
    def state(self) -> MasteryState:
        return mastery_state(self.mastery)

    def is_due(self, now: datetime) -> bool:
        """Whether the next review time has passed."""
        return self.next_review is not None and as_utc(self.next_review) <= as_utc(now)

    def validate(self) -> None:
        """Raise InvalidRecord if the record violates its invariants."""
        if not 0 <= self.mastery <= 100:
            raise InvalidRecord(f"mastery {self.mastery} is outside 0-100", "mastery")
        if self.review_count < 0:
            raise InvalidRecord(f"review_count {self.review_count} is negative", "review_count")
        if self.correct_count < 0:
            raise InvalidRecord(f"correct_count {self.correct_count} is negative", "correct_count")
        if self.correct_count > self.review_count:
            raise InvalidRecord(
                f"correct_count {self.correct_count} exceeds review_count {self.review_count}",
                "correct_count",
            )


@dataclass(frozen=True)
class MasteryDelta:
    """Mastery points added for a correct and an incorrect answer."""
    on_correct: int = 15
    on_incorrect: int = -10


@dataclass
class QueueOptions:
    """Ordering and size options of a study queue."""
    limit: int = 20
    prioritize_high_frequency: bool = True
    prioritize_exam_focus: bool = True
    include_review: bool = True


@dataclass
class StudySessionRequest:
    """Parameters of a study session; never persisted."""
    user_id: int
    wordbook_id: Optional[int] = None
    kind: ItemKind = ItemKind.WORD
    options: QueueOptions = field(default_factory=QueueOptions)
