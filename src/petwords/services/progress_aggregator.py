"""Topic and account progress derived from word records and quiz results."""
import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from petwords.config import settings
from petwords.errors import InvalidOutcomeInput
from petwords.models.progress_models import (
    AccountProgress,
    AccountSnapshot,
    MasteryLevel,
    QuizRecord,
    TopicProgress,
    WordRecord,
)
from petwords.services.due_selector import due_count

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def recompute(
    topic_id: str,
    records: Iterable[WordRecord],
    previous: Optional[TopicProgress] = None,
    today: Optional[date] = None,
) -> TopicProgress:
    """Recount a topic from its records.

    Quiz figures are carried over from ``previous``. When ``today`` is given
    it is also recorded as a study day of the topic.
    """
    records = list(records)
    progress = replace(previous, study_days=list(previous.study_days)) if previous else TopicProgress()

    total_mastery = sum(int(record.mastery_level) for record in records)
    progress.words_studied = len(records)
    progress.words_learned = sum(1 for record in records if record.mastery_level >= MasteryLevel.FAMILIAR)
    progress.average_mastery = round(total_mastery / len(records), 2) if records else 0.0

    if today is not None:
        progress.first_studied = progress.first_studied or today
        progress.last_studied = today
        if today not in progress.study_days:
            progress.study_days.append(today)
            progress.study_days = progress.study_days[-settings.learning.study_days_limit:]
        logger.debug(f"Topic {topic_id}: {progress.words_learned}/{progress.words_studied} learned")

    return progress


def refresh_topics(snapshot: AccountSnapshot) -> None:
    """Recount every topic that has records, without touching study days."""
    topic_ids = {record.topic_id for record in snapshot.word_learning.values()}
    for topic_id in topic_ids:
        snapshot.topic_progress[topic_id] = recompute(
            topic_id,
            snapshot.records_for_topic(topic_id),
            previous=snapshot.topic_progress.get(topic_id),
        )


def total_words_learned(topic_progress: Dict[str, TopicProgress]) -> int:
    return sum(progress.words_learned for progress in topic_progress.values())


def account_progress(snapshot: AccountSnapshot) -> AccountProgress:
    """Assemble the account-wide summary."""
    return AccountProgress(
        total_words_learned=total_words_learned(snapshot.topic_progress),
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        total_days_studied=snapshot.total_days_studied,
        last_study_str=snapshot.last_study_str,
        average_score=snapshot.average_score,
        total_quizzes=snapshot.total_quizzes,
        quiz_history=list(snapshot.quiz_history),
    )


def ingest_quiz(
    snapshot: AccountSnapshot,
    topic_id: str,
    score: int,
    total_questions: int,
    wrong_words: Optional[List[str]] = None,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> QuizRecord:
    """Add a quiz result to the account and its topic."""
    if total_questions <= 0:
        raise InvalidOutcomeInput("total_questions must be positive")
    if score < 0 or score > total_questions:
        raise InvalidOutcomeInput(f"score {score} is outside 0..{total_questions}")

    now = now or datetime.now()
    today = today or now.date()
    percentage = round_half_up(score / total_questions * 100)

    quiz = QuizRecord(
        topic_id=topic_id,
        taken_at=now,
        date_str=today,
        score=score,
        total_questions=total_questions,
        percentage=percentage,
        wrong_words=list(wrong_words or []),
    )

    snapshot.quiz_history.append(quiz)
    snapshot.quiz_history = snapshot.quiz_history[-settings.learning.quiz_history_limit:]
    snapshot.total_quizzes += 1
    snapshot.average_score = round_half_up(
        sum(item.percentage for item in snapshot.quiz_history) / len(snapshot.quiz_history)
    )

    topic = snapshot.topic_progress.get(topic_id) or TopicProgress(first_studied=today)
    topic.quizzes_taken += 1
    topic.best_quiz_score = max(topic.best_quiz_score, percentage)
    topic.total_quiz_score += percentage
    topic.average_quiz_score = round_half_up(topic.total_quiz_score / topic.quizzes_taken)
    topic.last_quiz_date = today
    snapshot.topic_progress[topic_id] = topic

    logger.info(f"Quiz recorded for {snapshot.account_id}: {topic_id} {score}/{total_questions} ({percentage}%)")
    return quiz


def quiz_history(snapshot: AccountSnapshot, topic_id: Optional[str] = None, limit: int = 10) -> List[QuizRecord]:
    """Latest quizzes, newest first."""
    quizzes = [quiz for quiz in snapshot.quiz_history if topic_id is None or quiz.topic_id == topic_id]
    return list(reversed(quizzes[-limit:])) if limit > 0 else []


def learned_words(snapshot: AccountSnapshot, topic_id: str) -> List[str]:
    """Ids of the words of a topic that reached FAMILIAR."""
    return [
        record.word_id
        for record in snapshot.records_for_topic(topic_id)
        if record.mastery_level >= MasteryLevel.FAMILIAR
    ]


def detailed_stats(snapshot: AccountSnapshot, today: date) -> Dict[str, Any]:
    """Statistics for a profile page."""
    records = list(snapshot.word_learning.values())
    mastered = sum(1 for record in records if record.mastery_level >= MasteryLevel.MASTERED)
    new = sum(1 for record in records if record.mastery_level == MasteryLevel.NEW)

    return {
        "display_name": snapshot.display_name,
        "start_date": snapshot.start_date,
        "total_days_studied": snapshot.total_days_studied,
        "current_streak": snapshot.current_streak,
        "longest_streak": snapshot.longest_streak,
        "total_words_studied": len(records),
        "total_words_learned": total_words_learned(snapshot.topic_progress),
        "mastered_words": mastered,
        "learning_words": len(records) - mastered - new,
        "new_words": new,
        "words_due_for_review": due_count(records, today),
        "total_quizzes": snapshot.total_quizzes,
        "average_score": snapshot.average_score,
        "topic_progress": dict(snapshot.topic_progress),
        "recent_quizzes": quiz_history(snapshot, limit=5),
    }


@dataclass
class LeaderboardEntry:
    """One row of the read-only leaderboard projection."""
    rank: int
    name: str
    words_learned: int
    streak: int
    average_score: int
    days_studied: int


def leaderboard(snapshots: Iterable[AccountSnapshot], limit: Optional[int] = None) -> List[LeaderboardEntry]:
    """Rank accounts by learned words; reads the snapshots only."""
    limit = limit or settings.learning.leaderboard_limit
    ranked = sorted(snapshots, key=lambda snapshot: snapshot.total_words_learned, reverse=True)
    return [
        LeaderboardEntry(
            rank=index + 1,
            name=snapshot.display_name or snapshot.account_id,
            words_learned=snapshot.total_words_learned,
            streak=snapshot.current_streak,
            average_score=snapshot.average_score,
            days_studied=snapshot.total_days_studied,
        )
        for index, snapshot in enumerate(ranked[:limit])
    ]
