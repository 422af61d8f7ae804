"""Test configuration."""
import os
from pathlib import Path
from typing import Callable, Generator

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from faker import Faker
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wordrecall.models.base import init_db
from wordrecall.models.models import User, Word, Wordbook, WordMeaning

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh in-memory database session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    user = User(username=fake.unique.user_name())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db: Session) -> User:
    """Create an admin user."""
    admin = User(username=fake.unique.user_name(), is_admin=True)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def wordbook(db: Session) -> Wordbook:
    """Create a test wordbook."""
    wordbook = Wordbook(name="CET-4", category="exam", level="intermediate")
    db.add(wordbook)
    db.commit()
    db.refresh(wordbook)
    return wordbook


@pytest.fixture
def make_word(db: Session, wordbook: Wordbook) -> Callable[..., Word]:
    """Factory creating words in the test wordbook."""
    def _make_word(**kwargs) -> Word:
        values = {
            "wordbook_id": wordbook.id,
            "word": fake.word(),
            "meaning": fake.sentence(nb_words=3),
        }
        values.update(kwargs)
        word = Word(**values)
        db.add(word)
        db.commit()
        db.refresh(word)
        return word

    return _make_word


@pytest.fixture
def make_meaning(db: Session) -> Callable[..., WordMeaning]:
    """Factory creating meanings of a word."""
    def _make_meaning(word: Word, **kwargs) -> WordMeaning:
        values = {"word_id": word.id, "meaning": fake.sentence(nb_words=2)}
        values.update(kwargs)
        meaning = WordMeaning(**values)
        db.add(meaning)
        db.commit()
        db.refresh(meaning)
        return meaning

    return _make_meaning
