"""Tests for the content catalog."""
import pytest
from sqlalchemy.orm import Session

from wordrecall.errors import NotAuthorized
from wordrecall.models.models import User, Word, Wordbook
from wordrecall.models.progress_models import UNRANKED, ItemKind
from wordrecall.services.content_catalog import ContentCatalog


@pytest.fixture
def catalog(db: Session) -> ContentCatalog:
    """Create a read-only catalog."""
    return ContentCatalog(db)


def test_list_items_orders_by_exam_priority_then_rank(catalog: ContentCatalog, wordbook: Wordbook, make_word) -> None:
    """Items come sorted like the candidate prefetch."""
    unranked = make_word(word="zeal", exam_priority=50)
    rare = make_word(word="abate", exam_priority=50, frequency_rank=900)
    common = make_word(word="make", exam_priority=50, frequency_rank=3)
    top = make_word(word="exam", exam_priority=95, frequency_rank=4000)

    items = catalog.list_items(wordbook.id)

    assert [item.id for item in items] == [top.id, common.id, rare.id, unranked.id]
    assert items[-1].frequency_rank == UNRANKED
    assert all(item.kind is ItemKind.WORD for item in items)


def test_list_items_filters_by_wordbook(catalog: ContentCatalog, db: Session, wordbook: Wordbook, make_word) -> None:
    """Only words of the requested wordbook are returned."""
    other_book = Wordbook(name="Business")
    db.add(other_book)
    db.commit()
    mine = make_word()
    make_word(wordbook_id=other_book.id)

    assert [item.id for item in catalog.list_items(wordbook.id)] == [mine.id]
    assert len(catalog.list_items()) == 2


def test_list_items_limit(catalog: ContentCatalog, wordbook: Wordbook, make_word) -> None:
    """The limit caps the number of words fetched."""
    for priority in range(5):
        make_word(exam_priority=priority)

    assert len(catalog.list_items(wordbook.id, limit=3)) == 3
    assert catalog.list_items(wordbook.id, limit=0) == []


def test_word_item_fields(catalog: ContentCatalog, wordbook: Wordbook, make_word) -> None:
    """Word columns map onto the learning item."""
    word = make_word(
        word="bank",
        meaning="a financial institution",
        phonetic="/bæŋk/",
        example="I went to the bank.",
        exam_priority=70,
        frequency_rank=120,
        is_high_frequency=True,
    )

    item = catalog.list_items(wordbook.id)[0]

    assert item.id == word.id
    assert item.text == "bank"
    assert item.meaning == "a financial institution"
    assert item.phonetic == "/bæŋk/"
    assert item.example == "I went to the bank."
    assert item.exam_priority == 70
    assert item.frequency_rank == 120
    assert item.is_high_frequency is True
    assert item.wordbook_id == wordbook.id


def test_meaning_items(catalog: ContentCatalog, wordbook: Wordbook, make_word, make_meaning) -> None:
    """Meaning items inherit from their word and sort by frequency score."""
    word = make_word(word="bank", exam_priority=40, frequency_rank=120, example="word example")
    rare = make_meaning(word, meaning="side of a river", frequency_score=0.2, is_exam_focus=True)
    common = make_meaning(word, meaning="financial institution", frequency_score=0.8, example="own example")

    items = catalog.list_items(wordbook.id, kind=ItemKind.MEANING)

    assert [item.id for item in items] == [common.id, rare.id]
    assert all(item.kind is ItemKind.MEANING for item in items)
    assert all(item.word_id == word.id and item.text == "bank" for item in items)
    assert items[0].exam_priority == 40
    assert items[0].example == "own example"
    assert items[1].exam_priority == 100
    assert items[1].example == "word example"


def test_list_exam_focus_meanings(catalog: ContentCatalog, wordbook: Wordbook, make_word, make_meaning) -> None:
    """Only exam focus meanings are listed."""
    word = make_word()
    focus = make_meaning(word, is_exam_focus=True, frequency_score=0.5)
    make_meaning(word, is_exam_focus=False, frequency_score=0.9)

    assert [item.id for item in catalog.list_exam_focus_meanings(wordbook.id)] == [focus.id]


def test_get_item(catalog: ContentCatalog, make_word, make_meaning) -> None:
    """Items can be fetched by kind and ID."""
    word = make_word()
    meaning = make_meaning(word)

    assert catalog.get_item(ItemKind.WORD, word.id).text == word.word
    assert catalog.get_item(ItemKind.MEANING, meaning.id).meaning == meaning.meaning
    assert catalog.get_item(ItemKind.WORD, 9999) is None


def test_admin_creates_wordbook_and_words(db: Session, admin: User) -> None:
    """Admins author wordbooks; words get sort orders in input order."""
    catalog = ContentCatalog(db, admin.id)

    wordbook = catalog.create_wordbook("IELTS", description="Academic words", level="advanced")
    words = catalog.add_words(
        wordbook.id,
        [
            {"word": "analyse", "meaning": "examine in detail"},
            {"word": "concept", "meaning": "an abstract idea", "difficulty": "hard"},
        ],
    )

    assert wordbook.icon == "📚"
    assert wordbook.created_by == admin.id
    assert [w.sort_order for w in words] == [1, 2]
    assert [w.difficulty for w in words] == ["medium", "hard"]
    listed = catalog.list_wordbooks()
    assert listed == [
        {
            "id": wordbook.id,
            "name": "IELTS",
            "description": "Academic words",
            "icon": "📚",
            "category": "exam",
            "level": "advanced",
            "word_count": 2,
        }
    ]


def test_add_words_requires_word_and_meaning(db: Session, admin: User, wordbook: Wordbook) -> None:
    """Incomplete entries are rejected before anything is stored."""
    catalog = ContentCatalog(db, admin.id)

    with pytest.raises(ValueError):
        catalog.add_words(wordbook.id, [{"word": "orphan"}])
    assert db.query(Word).count() == 0


def test_add_words_to_missing_wordbook(db: Session, admin: User) -> None:
    """Unknown wordbooks raise ValueError."""
    with pytest.raises(ValueError):
        ContentCatalog(db, admin.id).add_words(9999, [{"word": "a", "meaning": "b"}])


def test_non_admin_cannot_author(db: Session, user: User, wordbook: Wordbook) -> None:
    """Content changes need an admin."""
    catalog = ContentCatalog(db, user.id)

    with pytest.raises(NotAuthorized):
        catalog.create_wordbook("Mine")
    with pytest.raises(NotAuthorized):
        catalog.add_words(wordbook.id, [{"word": "a", "meaning": "b"}])
    with pytest.raises(NotAuthorized):
        ContentCatalog(db).create_wordbook("Anonymous")


if __name__ == "__main__":
    pytest.main([__file__])
