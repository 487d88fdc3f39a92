"""Plain data structures the scheduling engine works on."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class ScheduleOption(Enum):
    """Choices offered to the student after a correct answer."""
    TOMORROW = "tomorrow"
    TWO_DAYS = "twoDays"
    WEEK = "week"
    TWO_WEEKS = "twoWeeks"
    MONTH = "month"
    MASTERED = "mastered"

    @classmethod
    def parse(cls, value) -> "ScheduleOption":
        """Accept an option or its value; anything else is a programming error."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(option.value for option in cls)
            raise ValueError(f"Unknown schedule option {value!r}, expected one of: {allowed}")


class ReviewType(Enum):
    """Which due predicate a review session uses."""
    DUE = "due"  # due today or overdue
    TODAY = "today"  # scheduled for the current calendar day only

    @classmethod
    def parse(cls, value) -> "ReviewType":
        """None means the general review."""
        if value is None:
            return cls.DUE
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown review type {value!r}, expected 'due' or 'today'")


class OutcomeKind(Enum):
    """What happened to the word in a review."""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    MASTERED = "mastered"


class XpEvent(Enum):
    """XP triggers emitted by the engine; bookkeeping happens elsewhere."""
    REVIEW_WORD = "review_word"
    MASTER_WORD = "master_word"


XP_AMOUNTS = {
    XpEvent.REVIEW_WORD: 5,
    XpEvent.MASTER_WORD: 10,
}


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of one review, tagged by kind."""
    kind: OutcomeKind
    option: Optional[ScheduleOption] = None

    def __post_init__(self):
        if not isinstance(self.kind, OutcomeKind):
            raise ValueError(f"Unknown outcome kind {self.kind!r}")
        if self.kind is OutcomeKind.CORRECT:
            if not isinstance(self.option, ScheduleOption):
                raise ValueError("A correct outcome needs a schedule option")
        elif self.option is not None:
            raise ValueError(f"A {self.kind.value} outcome takes no schedule option")

    @classmethod
    def correct(cls, option) -> "AnswerOutcome":
        option = ScheduleOption.parse(option)
        if option is ScheduleOption.MASTERED:
            return cls.mastered()
        return cls(OutcomeKind.CORRECT, option)

    @classmethod
    def incorrect(cls) -> "AnswerOutcome":
        return cls(OutcomeKind.INCORRECT)

    @classmethod
    def mastered(cls) -> "AnswerOutcome":
        return cls(OutcomeKind.MASTERED)


@dataclass(frozen=True)
class Word:
    """Supervisor-owned vocabulary card as seen by the engine."""
    id: str
    word: str
    correct_option: str
    supervisor_id: str
    definition: str = ""
    unit: str = ""
    lesson: str = ""
    image_url: str = ""
    options: tuple = field(default_factory=tuple)


@dataclass(frozen=True)
class ProgressRecord:
    """A student's review state for one word."""
    word_id: str
    student_id: str
    strength: int
    next_review: datetime

    MASTERED = -1

    @property
    def is_mastered(self) -> bool:
        return self.strength == self.MASTERED

    def evolve(self, **changes) -> "ProgressRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class ReviewItem:
    """A catalog word together with one student's progress on it."""
    word: Word
    progress: ProgressRecord

    def __post_init__(self):
        if self.word.id != self.progress.word_id:
            raise ValueError(
                f"Progress for word {self.progress.word_id} cannot be merged with word {self.word.id}"
            )

    @property
    def word_id(self) -> str:
        return self.word.id

    @property
    def strength(self) -> int:
        return self.progress.strength

    @property
    def next_review(self) -> datetime:
        return self.progress.next_review

    @property
    def unit(self) -> str:
        return self.word.unit

    @property
    def lesson(self) -> str:
        return self.word.lesson

    @property
    def is_mastered(self) -> bool:
        return self.progress.is_mastered


class SchedulingEventKind(Enum):
    ANSWERED = "answered"
    RESCHEDULED = "rescheduled"


@dataclass(frozen=True)
class SchedulingEvent:
    """Notification sent to subscribers after a progress write."""
    kind: SchedulingEventKind
    student_id: str
    word_id: str
    record: ProgressRecord
    outcome: Optional[AnswerOutcome] = None
    option: Optional[ScheduleOption] = None
    xp_event: Optional[XpEvent] = None
