"""Review session controller driving one word at a time through the engine."""
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from wordladder import monitoring
from wordladder.config import settings
from wordladder.models.review_models import (
    AnswerOutcome,
    ProgressRecord,
    ReviewItem,
    ReviewType,
    ScheduleOption,
)
from wordladder.services.scheduling_service import SchedulingService, recommended_option

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of a review session."""
    LOADING = "loading"
    PRESENTING = "presenting"
    AWAITING_ANSWER = "awaiting_answer"
    FEEDBACK = "feedback"
    SCHEDULING = "scheduling"
    FINISHED = "finished"


class InvalidTransitionError(RuntimeError):
    """A session method was called in a state that does not allow it."""


@dataclass(frozen=True)
class Feedback:
    """What the student sees after submitting an answer."""
    selected_option: str
    correct_option: str
    is_correct: bool
    display_seconds: float


class ReviewSession:
    """Runs a review session for one student until no due words remain."""

    def __init__(
        self,
        scheduling_service: SchedulingService,
        student_id: str,
        unit: Optional[str] = None,
        lesson: Optional[str] = None,
        review_type=None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the session; call load_next() to fetch the first word."""
        self.scheduling_service = scheduling_service
        self.student_id = student_id
        self.unit = unit
        self.lesson = lesson
        self.review_type = ReviewType.parse(review_type)
        self.rng = rng or random.Random()

        self.state = SessionState.LOADING
        self.current_item: Optional[ReviewItem] = None
        self.options: List[str] = []
        self.feedback: Optional[Feedback] = None
        self.reviewed_count = 0
        monitoring.review_sessions_started.labels(review_type=self.review_type.value).inc()

    @property
    def is_finished(self) -> bool:
        return self.state is SessionState.FINISHED

    @property
    def recommended_option(self) -> Optional[ScheduleOption]:
        """Suggested interval while the student is choosing one."""
        if self.state is not SessionState.SCHEDULING:
            return None
        return recommended_option(self.current_item.strength)

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = " or ".join(state.value for state in states)
            raise InvalidTransitionError(f"Session is {self.state.value}, expected {expected}")

    def load_next(self) -> Optional[ReviewItem]:
        """Fetch the next due word; the session finishes when there is none."""
        self._require(SessionState.LOADING)
        item = self.scheduling_service.get_next_due_word(
            self.student_id, self.unit, self.lesson, self.review_type
        )
        self.feedback = None
        if item is None:
            self.current_item = None
            self.options = []
            self.state = SessionState.FINISHED
            monitoring.review_sessions_finished.labels(review_type=self.review_type.value).inc()
            logger.info(f"Review session of student {self.student_id} finished after {self.reviewed_count} words")
            return None

        self.current_item = item
        self.options = list(item.word.options)
        if settings.scheduling.shuffle_options:
            self.rng.shuffle(self.options)
        self.state = SessionState.PRESENTING
        return item

    def refresh(self) -> Optional[ReviewItem]:
        """Re-read progress written elsewhere and reload the current word."""
        self._require(SessionState.LOADING, SessionState.PRESENTING, SessionState.AWAITING_ANSWER)
        self.scheduling_service.invalidate()
        self.state = SessionState.LOADING
        return self.load_next()

    def present(self) -> None:
        """The word is on screen and waits for an answer."""
        self._require(SessionState.PRESENTING)
        self.state = SessionState.AWAITING_ANSWER

    def submit(self, selection: str) -> Feedback:
        """Check the selected option against the correct one."""
        if self.state is SessionState.PRESENTING:
            self.present()
        self._require(SessionState.AWAITING_ANSWER)
        correct_option = self.current_item.word.correct_option
        self.feedback = Feedback(
            selected_option=selection,
            correct_option=correct_option,
            is_correct=selection == correct_option,
            display_seconds=settings.scheduling.feedback_delay_seconds,
        )
        self.state = SessionState.FEEDBACK
        return self.feedback

    def continue_after_feedback(self) -> Optional[ReviewItem]:
        """Leave the feedback screen.

        A correct answer moves on to choosing the next interval and returns
        None. An incorrect answer is recorded right away and the next due word
        is returned (None once the session is finished). If the write fails the
        session stays in feedback so the call can be retried.
        """
        self._require(SessionState.FEEDBACK)
        if self.feedback.is_correct:
            self.state = SessionState.SCHEDULING
            return None
        return self._record(AnswerOutcome.incorrect())

    def choose_schedule(self, option) -> Optional[ReviewItem]:
        """Record a correct answer with the chosen interval and load the next word."""
        self._require(SessionState.SCHEDULING)
        return self._record(AnswerOutcome.correct(option))

    def _record(self, outcome: AnswerOutcome) -> Optional[ReviewItem]:
        # Computed from the pre-answer progress, so a retry after a failure writes the same strength
        record: ProgressRecord = self.scheduling_service.record_answer(self.current_item, outcome)
        logger.debug(f"Recorded {outcome.kind.value} for word {record.word_id}")
        self.reviewed_count += 1
        self.state = SessionState.LOADING
        return self.load_next()

    def run_answer(self, selection: str, option=None) -> Optional[ReviewItem]:
        """Submit an answer and finish its scheduling in one call.

        ``option`` is used after a correct answer; when omitted the recommended
        interval is taken.
        """
        feedback = self.submit(selection)
        next_item = self.continue_after_feedback()
        if feedback.is_correct:
            return self.choose_schedule(option or self.recommended_option)
        return next_item
