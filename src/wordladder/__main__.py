"""Command line entry point for inspecting and adjusting review schedules."""
import argparse
import logging
import sys
from typing import List, Optional

from wordladder.app import WordLadder
from wordladder.logging_config import setup_logging
from wordladder.models.base import init_db
from wordladder.models.review_models import ReviewItem, ReviewType, ScheduleOption
from wordladder.services.scheduling_service import WordNotFoundError

logger = logging.getLogger(__name__)


def format_item(item: ReviewItem) -> str:
    """One line per word: id, text, grouping, strength and next review."""
    strength = "mastered" if item.is_mastered else str(item.strength)
    return (
        f"{item.word_id}\t{item.word.word}\t{item.unit}/{item.lesson}\t"
        f"{strength}\t{item.next_review.isoformat()}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wordladder", description=__doc__)
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables")

    next_parser = commands.add_parser("next", help="Show the next due word of a student")
    next_parser.add_argument("student_id")
    next_parser.add_argument("--unit")
    next_parser.add_argument("--lesson")
    next_parser.add_argument(
        "--review-type",
        choices=[review_type.value for review_type in ReviewType],
        default=ReviewType.DUE.value,
    )

    words_parser = commands.add_parser("words", help="List a student's words")
    words_parser.add_argument("student_id")
    words_parser.add_argument("--mastered", action="store_true", help="List mastered words only")
    words_parser.add_argument("--unit")
    words_parser.add_argument("--lesson")

    reschedule_parser = commands.add_parser("reschedule", help="Move a word's next review")
    reschedule_parser.add_argument("student_id")
    reschedule_parser.add_argument("word_id")
    reschedule_parser.add_argument("option", choices=[option.value for option in ScheduleOption])

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line interface."""
    args = build_parser().parse_args(argv)
    setup_logging("Starting wordladder ...", args.log_level)

    if args.command == "init-db":
        init_db()
        logger.info("Database tables created")
        return 0

    with WordLadder() as app:
        if args.command == "next":
            item = app.scheduling.get_next_due_word(args.student_id, args.unit, args.lesson, args.review_type)
            if item is None:
                print("No words due")
            else:
                print(format_item(item))
        elif args.command == "words":
            if args.mastered:
                items = app.scheduling.get_mastered_words(args.student_id, args.unit, args.lesson)
            else:
                items = app.scheduling.get_learning_words(args.student_id, args.unit, args.lesson)
            for item in items:
                print(format_item(item))
        elif args.command == "reschedule":
            try:
                record = app.scheduling.reschedule(args.student_id, args.word_id, args.option)
            except WordNotFoundError as e:
                logger.error(str(e))
                return 1
            print(f"{record.word_id}\t{record.strength}\t{record.next_review.isoformat()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
