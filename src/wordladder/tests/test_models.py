"""Tests for database models."""
from datetime import UTC, datetime

import pytest
from faker import Faker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wordladder.models.models import User, Word, WordProgress

fake = Faker()


def test_user_creation(db: Session) -> None:
    """Test user creation."""
    user = User(id="u-1", name=fake.name(), email=fake.email())
    db.add(user)
    db.commit()
    db.refresh(user)

    assert user.role == "student"
    assert user.supervisor_id is None
    assert user.timezone is None
    assert user.created_at is not None


def test_student_supervisor_relationship(db: Session, supervisor: User, student: User) -> None:
    assert student.supervisor is supervisor


def test_word_creation(db: Session, supervisor: User) -> None:
    """Test word creation."""
    word = Word(
        id="apple",
        supervisor_id=supervisor.id,
        word="apple",
        definition="A round fruit",
        options=["apple", "pear", "plum", "fig"],
        correct_option="apple",
    )
    db.add(word)
    db.commit()
    db.refresh(word)

    assert word.options == ["apple", "pear", "plum", "fig"]
    assert word.unit == ""
    assert word in supervisor.words


def test_progress_is_unique_per_student_and_word(db: Session, student: User, make_word) -> None:
    word = make_word()
    now = datetime.now(UTC)
    db.add(WordProgress(user_id=student.id, word_id=word.id, strength=0, next_review=now))
    db.commit()

    db.add(WordProgress(user_id=student.id, word_id=word.id, strength=1, next_review=now))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_progress_deleted_with_word(db: Session, student: User, make_word) -> None:
    word = make_word()
    db.add(WordProgress(user_id=student.id, word_id=word.id, strength=2, next_review=datetime.now(UTC)))
    db.commit()

    db.delete(word)
    db.commit()

    assert db.query(WordProgress).count() == 0


if __name__ == "__main__":
    pytest.main([__file__])
