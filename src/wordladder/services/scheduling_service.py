"""Scheduling engine: merges catalog and progress, picks due words, applies answers."""
import calendar
import logging
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Callable, Dict, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from wordladder import monitoring
from wordladder.config import settings
from wordladder.models.review_models import (
    AnswerOutcome,
    OutcomeKind,
    ProgressRecord,
    ReviewItem,
    ReviewType,
    ScheduleOption,
    SchedulingEvent,
    SchedulingEventKind,
    Word,
    XpEvent,
)
from wordladder.services.stores import ProgressStore, ProgressStoreError, WordCatalog

logger = logging.getLogger(__name__)

SchedulingListener = Callable[[SchedulingEvent], None]

# Offsets of the interval ladder; MONTH is a calendar month, handled by add_months
DAY_OFFSETS = {
    ScheduleOption.TOMORROW: 1,
    ScheduleOption.TWO_DAYS: 2,
    ScheduleOption.WEEK: 7,
    ScheduleOption.TWO_WEEKS: 14,
}
INCORRECT_OFFSET_DAYS = 1


class WordNotFoundError(LookupError):
    """The word is not part of the student's catalog."""


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the length of the target month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def compute_next_review(now: datetime, option: ScheduleOption) -> datetime:
    """Return when a word answered with ``option`` is due again."""
    option = ScheduleOption.parse(option)
    if option is ScheduleOption.MASTERED:
        return now
    if option is ScheduleOption.MONTH:
        return add_months(now, 1)
    return now + timedelta(days=DAY_OFFSETS[option])


def recommended_option(strength: int) -> ScheduleOption:
    """Suggest an interval from the strength before the answer."""
    if strength <= 0:
        return ScheduleOption.TWO_DAYS
    if strength == 1:
        return ScheduleOption.WEEK
    if strength == 2:
        return ScheduleOption.TWO_WEEKS
    return ScheduleOption.MONTH


def apply_outcome(record: ProgressRecord, outcome: AnswerOutcome, now: datetime) -> ProgressRecord:
    """Compute the progress record that follows an answer.

    An incorrect answer drops strength by one (never below zero) and brings the
    word back tomorrow. A correct answer raises strength by one and moves the
    review date by the chosen interval. A strength below zero restarts at one,
    which only happens when a mastered word is answered outside the due
    selection. Mastering a word pins strength to -1.
    """
    if not isinstance(outcome, AnswerOutcome):
        raise ValueError(f"Expected an AnswerOutcome, got {outcome!r}")

    if outcome.kind is OutcomeKind.INCORRECT:
        return record.evolve(
            strength=max(0, record.strength - 1),
            next_review=now + timedelta(days=INCORRECT_OFFSET_DAYS),
        )
    if outcome.kind is OutcomeKind.CORRECT:
        strength = record.strength + 1 if record.strength >= 0 else 1
        return record.evolve(strength=strength, next_review=compute_next_review(now, outcome.option))
    if outcome.kind is OutcomeKind.MASTERED:
        return record.evolve(strength=ProgressRecord.MASTERED, next_review=now)
    raise ValueError(f"Unknown outcome kind {outcome.kind!r}")


def start_of_day(now: datetime) -> datetime:
    """Midnight of ``now``'s calendar day, in ``now``'s timezone."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_due_by_now(item: ReviewItem, now: datetime) -> bool:
    """General review: scheduled for now or any earlier moment."""
    return item.next_review <= now


def is_due_today(item: ReviewItem, now: datetime) -> bool:
    """Today's review: scheduled on the current calendar day, overdue words excluded."""
    return item.next_review.astimezone(now.tzinfo).date() == now.date()


def filter_by_unit_and_lesson(
    items: Iterable[ReviewItem], unit: Optional[str] = None, lesson: Optional[str] = None
) -> List[ReviewItem]:
    """Keep items of the given unit and lesson; an empty filter keeps everything."""
    items = list(items)
    if unit:
        items = [item for item in items if item.unit == unit]
    if lesson:
        items = [item for item in items if item.lesson == lesson]
    return items


DUE_STRATEGIES: Dict[ReviewType, Callable[[ReviewItem, datetime], bool]] = {
    ReviewType.DUE: is_due_by_now,
    ReviewType.TODAY: is_due_today,
}


class SchedulingService:
    """Service deciding which word a student reviews next and when it comes back."""

    def __init__(
        self,
        catalog: WordCatalog,
        store: ProgressStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the service with its catalog, progress store and clock."""
        self.catalog = catalog
        self.store = store
        self.clock = clock or (lambda: datetime.now(UTC))
        self.listeners: List[SchedulingListener] = []

    # Time

    def get_timezone(self, student_id: str) -> tzinfo:
        """Timezone whose calendar day defines "today" for the student."""
        name = self.catalog.get_student_timezone(student_id) or settings.scheduling.default_timezone
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {name!r} for student {student_id}, using UTC")
            return UTC

    def now(self, student_id: str) -> datetime:
        """Current time in the student's timezone."""
        return self.clock().astimezone(self.get_timezone(student_id))

    # Subscriptions

    def subscribe(self, listener: SchedulingListener) -> Callable[[], None]:
        """Register a listener for progress writes; returns an unsubscribe callable."""
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: SchedulingEvent) -> None:
        for listener in list(self.listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Scheduling listener {listener!r} failed for word {event.word_id}: {e}")

    # Merge and selection

    def materialize_progress(
        self,
        student_id: str,
        catalog_words: Iterable[Word],
        existing_progress: Mapping[str, ProgressRecord],
        now: Optional[datetime] = None,
    ) -> List[ReviewItem]:
        """Merge catalog words with progress, creating records for unseen words."""
        now = now or self.now(student_id)
        first_review = start_of_day(now)

        items = []
        new_records = []
        for word in catalog_words:
            record = existing_progress.get(word.id)
            if record is None:
                record = ProgressRecord(
                    word_id=word.id,
                    student_id=student_id,
                    strength=0,
                    next_review=first_review,
                )
                new_records.append(record)
            items.append(ReviewItem(word=word, progress=record))

        if new_records:
            logger.info(f"Materializing {len(new_records)} progress records for student {student_id}")
            try:
                self.store.upsert_progress(student_id, new_records)
                monitoring.words_materialized.inc(len(new_records))
            except (ProgressStoreError, OSError) as e:
                # The merged list is still usable; the records are recreated on the next call
                monitoring.materialization_failures.inc()
                logger.error(f"Failed to persist new progress for student {student_id}: {e}")

        return items

    def get_merged_words_for_student(self, student_id: str) -> List[ReviewItem]:
        """Get every catalog word of the student's supervisor with the student's progress."""
        supervisor_id = self.catalog.get_supervisor_id(student_id)
        if not supervisor_id:
            logger.info(f"Student {student_id} has no supervisor, no words to review")
            return []

        words = self.catalog.get_catalog_words(supervisor_id)
        if not words:
            return []

        progress = {record.word_id: record for record in self.store.get_progress(student_id)}
        return self.materialize_progress(student_id, words, progress)

    def invalidate(self) -> None:
        """Drop cached store state so writes from other sessions become visible."""
        self.store.refresh()

    def refresh(self, student_id: str) -> List[ReviewItem]:
        """Drop cached store state and re-read the student's words."""
        self.invalidate()
        return self.get_merged_words_for_student(student_id)

    def select_due_word(
        self,
        review_items: Iterable[ReviewItem],
        unit: Optional[str] = None,
        lesson: Optional[str] = None,
        review_type=ReviewType.DUE,
        now: Optional[datetime] = None,
    ) -> Optional[ReviewItem]:
        """Pick the word that has been due the longest, or None if nothing is due."""
        review_type = ReviewType.parse(review_type)
        now = now or self.clock()
        is_due = DUE_STRATEGIES[review_type]

        candidates = [item for item in review_items if not item.is_mastered]
        # Today's review covers the whole catalog
        if review_type is not ReviewType.TODAY:
            candidates = filter_by_unit_and_lesson(candidates, unit, lesson)

        due_items = [item for item in candidates if is_due(item, now)]
        if not due_items:
            return None

        # sorted() is stable, so catalog order breaks ties
        return sorted(due_items, key=lambda item: item.next_review)[0]

    def get_next_due_word(
        self,
        student_id: str,
        unit: Optional[str] = None,
        lesson: Optional[str] = None,
        review_type=None,
    ) -> Optional[ReviewItem]:
        """Get the next word the student should review."""
        review_type = ReviewType.parse(review_type)
        items = self.get_merged_words_for_student(student_id)
        item = self.select_due_word(items, unit, lesson, review_type, now=self.now(student_id))
        logger.debug(f"Next {review_type.value} word for student {student_id}: {item.word_id if item else None}")
        return item

    def count_due_words(self, student_id: str, review_type=None) -> int:
        """Count the words a review session would serve right now."""
        review_type = ReviewType.parse(review_type)
        is_due = DUE_STRATEGIES[review_type]
        now = self.now(student_id)
        return sum(
            1
            for item in self.get_merged_words_for_student(student_id)
            if not item.is_mastered and is_due(item, now)
        )

    def get_learning_words(
        self, student_id: str, unit: Optional[str] = None, lesson: Optional[str] = None
    ) -> List[ReviewItem]:
        """Get words still in rotation, soonest review first."""
        items = filter_by_unit_and_lesson(self.get_merged_words_for_student(student_id), unit, lesson)
        return sorted((item for item in items if not item.is_mastered), key=lambda item: item.next_review)

    def get_mastered_words(
        self, student_id: str, unit: Optional[str] = None, lesson: Optional[str] = None
    ) -> List[ReviewItem]:
        """Get words the student has mastered."""
        items = filter_by_unit_and_lesson(self.get_merged_words_for_student(student_id), unit, lesson)
        return [item for item in items if item.is_mastered]

    # Answers

    def record_answer(self, item: ReviewItem, outcome: AnswerOutcome) -> ProgressRecord:
        """Apply an answer to a review item and persist the new progress."""
        student_id = item.progress.student_id
        record = apply_outcome(item.progress, outcome, self.now(student_id))
        self.store.upsert_progress(student_id, [record])

        monitoring.answers_recorded.labels(outcome=outcome.kind.value).inc()
        logger.info(
            f"Student {student_id} answered word {item.word_id} ({outcome.kind.value}): "
            f"strength {item.strength} -> {record.strength}, next review {record.next_review.isoformat()}"
        )

        xp_event = XpEvent.MASTER_WORD if outcome.kind is OutcomeKind.MASTERED else XpEvent.REVIEW_WORD
        self._notify(
            SchedulingEvent(
                kind=SchedulingEventKind.ANSWERED,
                student_id=student_id,
                word_id=item.word_id,
                record=record,
                outcome=outcome,
                option=outcome.option,
                xp_event=xp_event,
            )
        )
        return record

    def reschedule_word(self, item: ReviewItem, option) -> ProgressRecord:
        """Move a word's review date, or master it, without a quiz answer."""
        option = ScheduleOption.parse(option)
        student_id = item.progress.student_id
        now = self.now(student_id)
        if option is ScheduleOption.MASTERED:
            record = item.progress.evolve(strength=ProgressRecord.MASTERED, next_review=now)
        else:
            record = item.progress.evolve(next_review=compute_next_review(now, option))
        self.store.upsert_progress(student_id, [record])

        monitoring.words_rescheduled.labels(option=option.value).inc()
        logger.info(f"Student {student_id} rescheduled word {item.word_id} ({option.value})")

        self._notify(
            SchedulingEvent(
                kind=SchedulingEventKind.RESCHEDULED,
                student_id=student_id,
                word_id=item.word_id,
                record=record,
                option=option,
            )
        )
        return record

    def _get_item(self, student_id: str, word_id: str) -> ReviewItem:
        for item in self.get_merged_words_for_student(student_id):
            if item.word_id == word_id:
                return item
        raise WordNotFoundError(f"Word {word_id} not found for student {student_id}")

    def apply_answer_outcome(self, student_id: str, word_id: str, outcome: AnswerOutcome) -> ProgressRecord:
        """Record an answer for a word identified by id."""
        return self.record_answer(self._get_item(student_id, word_id), outcome)

    def reschedule(self, student_id: str, word_id: str, option) -> ProgressRecord:
        """Reschedule a word identified by id."""
        return self.reschedule_word(self._get_item(student_id, word_id), option)
