"""Command line entry point."""
import argparse
import logging
import sys
from typing import List, Optional

from wordrecall.config import settings
from wordrecall.logging_config import setup_logging
from wordrecall.models.base import SessionLocal, init_db
from wordrecall.models.progress_models import ItemKind, QueueOptions, StudySessionRequest
from wordrecall.monitoring import start_monitoring
from wordrecall.services.stats_service import StatsService
from wordrecall.services.study_service import StudyService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(prog="wordrecall", description="Vocabulary study queue tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    queue_parser = subparsers.add_parser("queue", help="Print the next study queue of a user")
    queue_parser.add_argument("--user", type=int, required=True)
    queue_parser.add_argument("--wordbook", type=int, default=None)
    queue_parser.add_argument("--limit", type=int, default=settings.learning.default_queue_limit)
    queue_parser.add_argument("--meanings", action="store_true", help="Queue word meanings instead of words")
    queue_parser.add_argument("--no-review", action="store_true", help="Do not promote due items")

    stats_parser = subparsers.add_parser("stats", help="Print statistics of a user")
    stats_parser.add_argument("--user", type=int, required=True)
    return parser


def print_queue(args: argparse.Namespace) -> None:
    db = SessionLocal()
    try:
        service = StudyService(db, args.user)
        request = StudySessionRequest(
            user_id=args.user,
            wordbook_id=args.wordbook,
            kind=ItemKind.MEANING if args.meanings else ItemKind.WORD,
            options=QueueOptions(limit=args.limit, include_review=not args.no_review),
        )
        for position, item in enumerate(service.build_queue(request), start=1):
            print(f"{position:3d}. {item.text} - {item.meaning} (exam {item.exam_priority})")
    finally:
        db.close()


def print_stats(args: argparse.Namespace) -> None:
    db = SessionLocal()
    try:
        service = StatsService(db)
        stats = service.get_user_stats(args.user)
        review = service.get_review_summary(args.user)
        print(f"Words: {stats.total_words} (mastered {stats.mastered_words}, learning {stats.learning_words})")
        print(f"Today: {stats.today_new_words} new, {stats.today_review_words} reviewed, {stats.today_study_minutes} min")
        print(f"Streak: {stats.streak} days, {stats.total_study_days} study days in total")
        print(f"Last 7 days: {' '.join(str(n) for n in stats.weekly_progress)}")
        print(f"Review: {review.due_count} due, {review.urgent_count} urgent")
    finally:
        db.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Run a command."""
    args = build_parser().parse_args(argv)
    setup_logging("Starting wordrecall ...")

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)

    init_db()
    if args.command == "init-db":
        logger.info("Database initialized at %s", settings.database.url)
        return 0

    try:
        if args.command == "queue":
            print_queue(args)
        elif args.command == "stats":
            print_stats(args)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
