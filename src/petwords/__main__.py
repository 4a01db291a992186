"""Command line entry point for the review scheduler."""
import argparse
import logging
import sys
from typing import List, Optional

from petwords.config import ensure_directories, settings
from petwords.errors import InvalidOutcomeInput
from petwords.logging_config import setup_logging
from petwords.models.progress_models import MasteryLevel
from petwords.monitoring import start_monitoring
from petwords.services.learning_service import LearningService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="petwords", description="Vocabulary review scheduler")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    review = commands.add_parser("review", help="Record a review outcome")
    review.add_argument("account")
    review.add_argument("topic")
    review.add_argument("word")
    review.add_argument("outcome", choices=["correct", "incorrect"])

    quiz = commands.add_parser("quiz", help="Record a quiz result")
    quiz.add_argument("account")
    quiz.add_argument("topic")
    quiz.add_argument("score", type=int)
    quiz.add_argument("total", type=int)
    quiz.add_argument("--wrong", nargs="*", default=[], help="Ids of words answered wrongly")

    due = commands.add_parser("due", help="List words due for review")
    due.add_argument("account")
    due.add_argument("--topic", default=None)

    progress = commands.add_parser("progress", help="Show topic or account progress")
    progress.add_argument("account")
    progress.add_argument("--topic", default=None)

    stats = commands.add_parser("stats", help="Show detailed statistics")
    stats.add_argument("account")

    leaderboard = commands.add_parser("leaderboard", help="Rank accounts by learned words")
    leaderboard.add_argument("--limit", type=int, default=None)
    return parser


def run(args: argparse.Namespace, service: LearningService) -> int:
    """Execute a parsed command, printing plain text results."""
    if args.command == "leaderboard":
        for entry in service.leaderboard(args.limit):
            print(f"{entry.rank:>3}. {entry.name:<20} {entry.words_learned:>5} words  streak {entry.streak}")
        return 0

    ctx = service.open_context(args.account)
    if not ctx.is_authenticated:
        raise InvalidOutcomeInput("An account id is required")

    if args.command == "review":
        result = service.record_outcome(ctx, args.topic, args.word, args.outcome == "correct")
        if result.skipped:
            print(f"Skipped: {result.reason}")
            return 1
        record = result.record
        print(
            f"{record.key}: {MasteryLevel(record.mastery_level).name} "
            f"next review {record.next_review.isoformat()}"
            + (" (saved locally)" if result.degraded else "")
        )
    elif args.command == "quiz":
        result = service.record_quiz_result(ctx, args.topic, args.score, args.total, args.wrong)
        print(f"Quiz {args.topic}: {result.quiz.percentage}% ({len(result.reviewed)} words to review)")
    elif args.command == "due":
        words = service.due_words(ctx, args.topic, refresh=True)
        for word in words:
            print(
                f"{word.key:<30} {MasteryLevel(word.record.mastery_level).name:<10} "
                f"{word.days_since_review} days"
            )
        print(f"{len(words)} words due")
    elif args.command == "progress":
        if args.topic:
            topic = service.topic_progress(ctx, args.topic)
            if topic is None:
                print(f"No progress for topic {args.topic}")
                return 1
            print(
                f"{args.topic}: {topic.words_learned}/{topic.words_studied} learned, "
                f"average mastery {topic.average_mastery}, best quiz {topic.best_quiz_score}%"
            )
        else:
            account = service.account_progress(ctx)
            print(
                f"{args.account}: {account.total_words_learned} words learned, "
                f"streak {account.current_streak} (longest {account.longest_streak}), "
                f"{account.total_days_studied} days studied, average score {account.average_score}%"
            )
    elif args.command == "stats":
        stats = service.detailed_stats(ctx)
        for key, value in stats.items():
            if key not in ("topic_progress", "recent_quizzes"):
                print(f"{key}: {value}")
    return 0


def main(argv: Optional[List[str]] = None, service: Optional[LearningService] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    ensure_directories()

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)

    service = service or LearningService.from_settings()
    try:
        return run(args, service)
    except InvalidOutcomeInput as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
