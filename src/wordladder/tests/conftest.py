"""Test configuration."""
import os
from datetime import UTC, datetime, timedelta
from typing import Callable, Generator

import pytest
from faker import Faker
from sqlalchemy.orm import Session

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

# Import after environment setup
from wordladder.models.base import Base, SessionLocal, engine, init_db
from wordladder.models.models import User, Word
from wordladder.services.scheduling_service import SchedulingService
from wordladder.services.stores import SqlProgressStore, SqlWordCatalog

fake = Faker()

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh in-memory database for each test."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def supervisor(db: Session) -> User:
    """Create a test supervisor."""
    user = User(id="sup-1", name=fake.name(), email=fake.unique.email(), role="supervisor")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def student(db: Session, supervisor: User) -> User:
    """Create a test student of the supervisor."""
    user = User(
        id="stu-1",
        name=fake.name(),
        email=fake.unique.email(),
        role="student",
        supervisor_id=supervisor.id,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def make_word(db: Session, supervisor: User) -> Callable[..., Word]:
    """Factory adding a word to the supervisor's catalog."""
    counter = {"n": 0}

    def _make_word(word: str = None, unit: str = "1", lesson: str = "1") -> Word:
        counter["n"] += 1
        text = word or fake.unique.word()
        row = Word(
            id=f"w{counter['n']}",
            supervisor_id=supervisor.id,
            word=text,
            definition=fake.sentence(),
            unit=unit,
            lesson=lesson,
            image_url=f"https://example.com/{text}.png",
            options=[text, f"{text}-a", f"{text}-b", f"{text}-c"],
            correct_option=text,
        )
        db.add(row)
        db.commit()
        return row

    return _make_word


@pytest.fixture
def progress_store(db: Session) -> SqlProgressStore:
    return SqlProgressStore(db)


@pytest.fixture
def scheduling_service(db: Session, progress_store: SqlProgressStore, clock: FixedClock) -> SchedulingService:
    """Create a scheduling service with a fixed clock."""
    return SchedulingService(SqlWordCatalog(db), progress_store, clock=clock)
