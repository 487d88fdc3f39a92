"""Tests for the strength and interval rules of the scheduling engine."""
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from wordladder.models.review_models import (
    AnswerOutcome,
    OutcomeKind,
    ProgressRecord,
    ReviewType,
    ScheduleOption,
)
from wordladder.services.scheduling_service import (
    add_months,
    apply_outcome,
    compute_next_review,
    recommended_option,
)

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=UTC)


def record(strength: int) -> ProgressRecord:
    return ProgressRecord(word_id="w1", student_id="stu-1", strength=strength, next_review=NOW - timedelta(days=3))


@pytest.mark.parametrize("strength, expected", [(0, 0), (1, 0), (2, 1), (5, 4)])
def test_incorrect_drops_strength_and_returns_tomorrow(strength: int, expected: int) -> None:
    """An incorrect answer never drops strength below zero."""
    result = apply_outcome(record(strength), AnswerOutcome.incorrect(), NOW)
    assert result.strength == expected
    assert result.next_review == NOW + timedelta(days=1)


def test_correct_week_adds_seven_days() -> None:
    result = apply_outcome(record(2), AnswerOutcome.correct("week"), NOW)
    assert result.strength == 3
    assert result.next_review == NOW + timedelta(days=7)


def test_correct_on_mastered_word_restarts_at_one() -> None:
    """A mastered word answered outside the due selection restarts at strength 1.

    Whether resuming a mastered word is intended is an open question; the
    transition is kept as the rule states it.
    """
    result = apply_outcome(record(-1), AnswerOutcome.correct(ScheduleOption.WEEK), NOW)
    assert result.strength == 1
    assert result.next_review == NOW + timedelta(days=7)


def test_mastered_pins_strength() -> None:
    result = apply_outcome(record(3), AnswerOutcome.mastered(), NOW)
    assert result.strength == -1
    assert result.is_mastered


def test_apply_outcome_keeps_identity() -> None:
    result = apply_outcome(record(0), AnswerOutcome.correct("tomorrow"), NOW)
    assert (result.word_id, result.student_id) == ("w1", "stu-1")


@pytest.mark.parametrize(
    "option, days",
    [
        (ScheduleOption.TOMORROW, 1),
        (ScheduleOption.TWO_DAYS, 2),
        (ScheduleOption.WEEK, 7),
        (ScheduleOption.TWO_WEEKS, 14),
    ],
)
def test_day_offsets(option: ScheduleOption, days: int) -> None:
    assert compute_next_review(NOW, option) == NOW + timedelta(days=days)


def test_day_offsets_follow_the_wall_clock_across_dst() -> None:
    """Clocks in Kyiv spring forward on 2026-03-29, so that day lasts 23 hours."""
    before = datetime(2026, 3, 28, 12, 0, tzinfo=ZoneInfo("Europe/Kyiv"))

    result = compute_next_review(before, ScheduleOption.TOMORROW)

    assert (result.hour, result.minute) == (12, 0)
    assert result.astimezone(UTC) == datetime(2026, 3, 29, 9, 0, tzinfo=UTC)
    assert result.astimezone(UTC) - before.astimezone(UTC) == timedelta(hours=23)


def test_month_offset_is_a_calendar_month() -> None:
    assert compute_next_review(NOW, ScheduleOption.MONTH) == datetime(2026, 4, 10, 15, 30, tzinfo=UTC)


def test_add_months_clamps_to_month_end() -> None:
    assert add_months(datetime(2026, 1, 31, tzinfo=UTC), 1) == datetime(2026, 2, 28, tzinfo=UTC)
    assert add_months(datetime(2028, 1, 31, tzinfo=UTC), 1) == datetime(2028, 2, 29, tzinfo=UTC)
    assert add_months(datetime(2026, 12, 15, tzinfo=UTC), 1) == datetime(2027, 1, 15, tzinfo=UTC)


@pytest.mark.parametrize(
    "strength, expected",
    [
        (0, ScheduleOption.TWO_DAYS),
        (1, ScheduleOption.WEEK),
        (2, ScheduleOption.TWO_WEEKS),
        (3, ScheduleOption.MONTH),
        (9, ScheduleOption.MONTH),
        (-1, ScheduleOption.TWO_DAYS),
    ],
)
def test_recommended_option(strength: int, expected: ScheduleOption) -> None:
    assert recommended_option(strength) is expected


def test_correct_with_mastered_option_is_mastered() -> None:
    assert AnswerOutcome.correct("mastered") == AnswerOutcome.mastered()


def test_unknown_schedule_option_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown schedule option 'fortnight'"):
        AnswerOutcome.correct("fortnight")


def test_outcome_shape_is_validated() -> None:
    with pytest.raises(ValueError):
        AnswerOutcome(OutcomeKind.CORRECT)
    with pytest.raises(ValueError):
        AnswerOutcome(OutcomeKind.INCORRECT, ScheduleOption.WEEK)
    with pytest.raises(ValueError):
        AnswerOutcome("correct", ScheduleOption.WEEK)


def test_apply_outcome_rejects_untagged_outcome() -> None:
    with pytest.raises(ValueError):
        apply_outcome(record(0), "correct", NOW)


def test_review_type_parse() -> None:
    assert ReviewType.parse(None) is ReviewType.DUE
    assert ReviewType.parse("today") is ReviewType.TODAY
    with pytest.raises(ValueError):
        ReviewType.parse("weekly")


if __name__ == "__main__":
    pytest.main([__file__])
