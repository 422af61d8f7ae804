"""Service for listing and authoring learning content."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from wordrecall.errors import NotAuthorized
from wordrecall.models.models import User, Word, Wordbook, WordMeaning
from wordrecall.models.progress_models import UNRANKED, ItemKind, LearningItem

logger = logging.getLogger(__name__)

EXAM_FOCUS_PRIORITY = 100


def item_from_word(word: Word) -> LearningItem:
    """Build a word-level learning item."""
    return LearningItem(
        id=word.id,
        kind=ItemKind.WORD,
        wordbook_id=word.wordbook_id,
        text=word.word,
        meaning=word.meaning,
        example=word.example,
        example_translation=word.example_translation,
        phonetic=word.phonetic,
        exam_priority=word.exam_priority or 0,
        frequency_rank=word.frequency_rank if word.frequency_rank is not None else UNRANKED,
        is_high_frequency=bool(word.is_high_frequency),
        word_id=word.id,
    )


def item_from_meaning(meaning: WordMeaning) -> LearningItem:
    """Build a meaning-level learning item from a meaning and its parent word."""
    word = meaning.word
    exam_priority = word.exam_priority or 0
    if meaning.is_exam_focus:
        exam_priority = EXAM_FOCUS_PRIORITY
    return LearningItem(
        id=meaning.id,
        kind=ItemKind.MEANING,
        wordbook_id=word.wordbook_id,
        text=word.word,
        meaning=meaning.meaning,
        example=meaning.example or word.example,
        example_translation=meaning.example_translation or word.example_translation,
        phonetic=word.phonetic,
        exam_priority=exam_priority,
        frequency_rank=word.frequency_rank if word.frequency_rank is not None else UNRANKED,
        is_high_frequency=bool(word.is_high_frequency),
        word_id=word.id,
    )


class ContentCatalog:
    """Read access to wordbooks and their items, plus admin authoring."""

    def __init__(self, db: Session, acting_user_id: Optional[int] = None):
        """Initialize the catalog with a database session."""
        self.db = db
        self.acting_user_id = acting_user_id

    def _require_admin(self) -> User:
        user = None
        if self.acting_user_id is not None:
            user = self.db.query(User).filter(User.id == self.acting_user_id).first()
        if not user or not user.is_admin:
            raise NotAuthorized(self.acting_user_id)
        return user

    def _word_query(self, collection_id: Optional[int]):
        # Words without a frequency rank go last
        query = self.db.query(Word).order_by(
            Word.exam_priority.desc(),
            Word.frequency_rank.is_(None),
            Word.frequency_rank.asc(),
            Word.sort_order,
            Word.id,
        )
        if collection_id is not None:
            query = query.filter(Word.wordbook_id == collection_id)
        return query

    def list_items(
        self,
        collection_id: Optional[int] = None,
        kind: ItemKind = ItemKind.WORD,
        limit: Optional[int] = None,
    ) -> List[LearningItem]:
        """List learning items of a wordbook, or of all wordbooks.

        Items come ordered by exam priority (descending) and frequency rank.
        For meaning items, ``limit`` applies to the number of words fetched.
        """
        query = self._word_query(collection_id)
        if kind is ItemKind.MEANING:
            query = query.options(selectinload(Word.meanings))
        if limit is not None:
            query = query.limit(max(limit, 0))
        words = query.all()

        if kind is ItemKind.WORD:
            return [item_from_word(word) for word in words]

        items = []
        for word in words:
            meanings = sorted(
                word.meanings,
                key=lambda m: (-(m.frequency_score or 0), m.meaning_order or 0, m.id),
            )
            items.extend(item_from_meaning(meaning) for meaning in meanings)
        return items

    def list_exam_focus_meanings(self, collection_id: Optional[int] = None) -> List[LearningItem]:
        """List meanings flagged as exam focus, most frequent first."""
        query = (
            self.db.query(WordMeaning)
            .join(Word)
            .filter(WordMeaning.is_exam_focus == True)
            .order_by(WordMeaning.frequency_score.desc(), WordMeaning.id)
        )
        if collection_id is not None:
            query = query.filter(Word.wordbook_id == collection_id)
        return [item_from_meaning(meaning) for meaning in query.all()]

    def get_item(self, kind: ItemKind, item_id: int) -> Optional[LearningItem]:
        """Get a single learning item by kind and ID."""
        if kind is ItemKind.MEANING:
            meaning = self.db.query(WordMeaning).filter(WordMeaning.id == item_id).first()
            return item_from_meaning(meaning) if meaning else None
        word = self.db.query(Word).filter(Word.id == item_id).first()
        return item_from_word(word) if word else None

    def list_wordbooks(self, active_only: bool = True) -> List[Dict[str, Any]]:
        """List wordbooks with their word counts."""
        query = (
            self.db.query(Wordbook, func.count(Word.id))
            .outerjoin(Word, Word.wordbook_id == Wordbook.id)
        )
        if active_only:
            query = query.filter(Wordbook.is_active == True)
        query = query.group_by(Wordbook.id).order_by(Wordbook.created_at, Wordbook.id)

        return [
            {
                "id": wordbook.id,
                "name": wordbook.name,
                "description": wordbook.description,
                "icon": wordbook.icon,
                "category": wordbook.category,
                "level": wordbook.level,
                "word_count": word_count,
            }
            for wordbook, word_count in query.all()
        ]

    def create_wordbook(
        self,
        name: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        category: str = "exam",
        level: Optional[str] = None,
    ) -> Wordbook:
        """Create a new wordbook."""
        admin = self._require_admin()
        wordbook = Wordbook(
            name=name,
            description=description,
            icon=icon or "📚",
            category=category,
            level=level,
            created_by=admin.id,
        )
        self.db.add(wordbook)
        self.db.commit()
        self.db.refresh(wordbook)
        logger.info("Wordbook %d (%s) created by user %d", wordbook.id, name, admin.id)
        return wordbook

    def add_words(self, wordbook_id: int, entries: List[Dict[str, Any]]) -> List[Word]:
        """Add words to a wordbook in the given order.

        Each entry needs ``word`` and ``meaning``; other Word columns are
        optional.
        """
        self._require_admin()
        wordbook = self.db.query(Wordbook).filter(Wordbook.id == wordbook_id).first()
        if not wordbook:
            raise ValueError(f"Wordbook {wordbook_id} not found")

        words = []
        for index, entry in enumerate(entries, start=1):
            if not entry.get("word") or not entry.get("meaning"):
                raise ValueError(f"Entry {index} needs both word and meaning")
            words.append(
                Word(
                    wordbook_id=wordbook_id,
                    word=entry["word"],
                    meaning=entry["meaning"],
                    phonetic=entry.get("phonetic"),
                    example=entry.get("example"),
                    example_translation=entry.get("example_translation"),
                    difficulty=entry.get("difficulty") or "medium",
                    exam_priority=entry.get("exam_priority", 0),
                    frequency_rank=entry.get("frequency_rank"),
                    is_high_frequency=entry.get("is_high_frequency", False),
                    sort_order=index,
                )
            )
        self.db.add_all(words)
        self.db.commit()
        logger.info("Added %d words to wordbook %d", len(words), wordbook_id)
        return words
