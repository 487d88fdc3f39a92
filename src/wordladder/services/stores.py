"""Word catalog and progress store used by the scheduling engine."""
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordladder import monitoring
from wordladder.models.models import User
from wordladder.models.models import Word as WordRow
from wordladder.models.models import WordProgress
from wordladder.models.review_models import ProgressRecord, Word

logger = logging.getLogger(__name__)


class ProgressStoreError(Exception):
    """The progress store could not be read or written."""


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class WordCatalog(ABC):
    """Read access to supervisor-owned words."""

    @abstractmethod
    def get_supervisor_id(self, student_id: str) -> Optional[str]:
        """Return the supervisor of a student, or None if there is none."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def get_catalog_words(self, supervisor_id: str) -> List[Word]:
        """Return all words of a supervisor in catalog order."""
        raise NotImplementedError("Subclasses must implement this method")

    def get_student_timezone(self, student_id: str) -> Optional[str]:
        """Return the student's IANA timezone name, if known."""
        return None


class ProgressStore(ABC):
    """Persistence of per-student progress records."""

    @abstractmethod
    def get_progress(self, student_id: str) -> List[ProgressRecord]:
        """Return every progress record of a student.

        Raises:
            ProgressStoreError: If the backing storage cannot be read.
        """
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def upsert_progress(self, student_id: str, records: Iterable[ProgressRecord]) -> None:
        """Insert or overwrite records; last write wins.

        Raises:
            ProgressStoreError: If the backing storage cannot be written.
        """
        raise NotImplementedError("Subclasses must implement this method")

    def refresh(self) -> None:
        """Forget cached state so writes from other sessions become visible."""


class SqlWordCatalog(WordCatalog):
    """Word catalog backed by the SQLAlchemy models."""

    def __init__(self, db: Session):
        """Initialize the catalog with a database session."""
        self.db = db

    def _get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_supervisor_id(self, student_id: str) -> Optional[str]:
        user = self._get_user(student_id)
        if not user:
            return None
        return user.supervisor_id

    def get_student_timezone(self, student_id: str) -> Optional[str]:
        user = self._get_user(student_id)
        return user.timezone if user else None

    def get_catalog_words(self, supervisor_id: str) -> List[Word]:
        rows = (
            self.db.query(WordRow)
            .filter(WordRow.supervisor_id == supervisor_id)
            .order_by(WordRow.created_at, WordRow.id)
            .all()
        )
        return [self._to_word(row) for row in rows]

    @staticmethod
    def _to_word(row: WordRow) -> Word:
        return Word(
            id=row.id,
            word=row.word,
            correct_option=row.correct_option,
            supervisor_id=row.supervisor_id,
            definition=row.definition or "",
            unit=row.unit or "",
            lesson=row.lesson or "",
            image_url=row.image_url or "",
            options=tuple(row.options or ()),
        )


class SqlProgressStore(ProgressStore):
    """Progress store backed by the word_progress table."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db

    def refresh(self) -> None:
        self.db.expire_all()

    def get_progress(self, student_id: str) -> List[ProgressRecord]:
        try:
            rows = (
                self.db.query(WordProgress)
                .filter(WordProgress.user_id == student_id)
                .all()
            )
        except SQLAlchemyError as e:
            monitoring.store_errors.labels(operation="get_progress").inc()
            logger.error(f"Failed to read progress for student {student_id}: {e}")
            self.db.rollback()
            raise ProgressStoreError(f"Failed to read progress for student {student_id}") from e
        return [
            ProgressRecord(
                word_id=row.word_id,
                student_id=row.user_id,
                strength=row.strength,
                next_review=as_utc(row.next_review),
            )
            for row in rows
        ]

    def upsert_progress(self, student_id: str, records: Iterable[ProgressRecord]) -> None:
        records = list(records)
        if not records:
            return
        try:
            existing = {
                row.word_id: row
                for row in self.db.query(WordProgress)
                .filter(
                    and_(
                        WordProgress.user_id == student_id,
                        WordProgress.word_id.in_([r.word_id for r in records]),
                    )
                )
                .all()
            }
            for record in records:
                row = existing.get(record.word_id)
                if row is None:
                    row = WordProgress(user_id=student_id, word_id=record.word_id)
                    self.db.add(row)
                    existing[record.word_id] = row
                row.strength = record.strength
                row.next_review = as_utc(record.next_review)
            self.db.commit()
        except SQLAlchemyError as e:
            monitoring.store_errors.labels(operation="upsert_progress").inc()
            logger.error(f"Failed to write {len(records)} progress records for student {student_id}: {e}")
            self.db.rollback()
            raise ProgressStoreError(f"Failed to write progress for student {student_id}") from e
        logger.debug(f"Saved {len(records)} progress records for student {student_id}")
