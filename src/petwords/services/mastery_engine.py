"""Mastery level state machine approximating the Ebbinghaus forgetting curve.

Day 0 learn, then reviews on days 1, 3, 7, 14 and 30 keep a word moving up
the levels. A miss drops the level so the word comes back sooner.
"""
import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Tuple

from petwords.config import settings
from petwords.errors import CorruptRecord
from petwords.models.progress_models import HistoryEntry, MasteryLevel, WordRecord

logger = logging.getLogger(__name__)


def interval_for(mastery_level: int) -> int:
    """Days until the next review for a mastery level."""
    return settings.learning.review_intervals[int(mastery_level)]


def next_review_for(mastery_level: int, today: date) -> date:
    """Date of the next review for a word reviewed today."""
    return today + timedelta(days=interval_for(mastery_level))


def next_level(mastery_level: int, is_correct: bool) -> int:
    """Mastery level after one review outcome."""
    if is_correct:
        if mastery_level < MasteryLevel.FAMILIAR:
            # First correct answer counts the word as learned
            return MasteryLevel.FAMILIAR
        if mastery_level < MasteryLevel.PERMANENT:
            return mastery_level + 1
        return MasteryLevel.PERMANENT

    if mastery_level >= MasteryLevel.CONFIDENT:
        return max(MasteryLevel.LEARNING, mastery_level - 2)
    if mastery_level > MasteryLevel.NEW:
        return max(MasteryLevel.LEARNING, mastery_level - 1)
    return MasteryLevel.NEW


def new_record(topic_id: str, word_id: str, today: date) -> WordRecord:
    """Create the record of a word seen for the first time."""
    return WordRecord(
        topic_id=topic_id,
        word_id=word_id,
        mastery_level=MasteryLevel.NEW,
        first_learned=today,
        last_reviewed=None,
        next_review=today,
    )


def apply_outcome(record: WordRecord, is_correct: bool, today: date) -> WordRecord:
    """Return the record after a review on ``today``; the input is not modified."""
    level = MasteryLevel(next_level(record.mastery_level, is_correct))
    history = record.history + [HistoryEntry(date=today, correct=is_correct, mastery_level=int(level))]
    history_limit = settings.learning.history_limit

    return replace(
        record,
        mastery_level=level,
        first_learned=record.first_learned or today,
        last_reviewed=today,
        next_review=next_review_for(level, today),
        review_count=record.review_count + 1,
        correct_count=record.correct_count + (1 if is_correct else 0),
        incorrect_count=record.incorrect_count + (0 if is_correct else 1),
        history=history[-history_limit:],
    )


def check_record(record: WordRecord) -> List[str]:
    """List the invariants a stored record violates."""
    problems = []
    if not MasteryLevel.NEW <= record.mastery_level <= MasteryLevel.PERMANENT:
        problems.append(f"mastery level {record.mastery_level} out of range")
    for name in ("review_count", "correct_count", "incorrect_count"):
        if getattr(record, name) < 0:
            problems.append(f"negative {name}")
    if record.correct_count + record.incorrect_count != record.review_count:
        problems.append("review count does not match correct and incorrect counts")
    if (
        record.correct_count > 0
        and record.incorrect_count == 0
        and record.mastery_level < MasteryLevel.FAMILIAR
    ):
        problems.append("correct answers without reaching familiar")
    undated = sum(1 for entry in record.history if entry.date is None)
    if undated:
        problems.append(f"{undated} history entries without a date")
    if len(record.history) > settings.learning.history_limit:
        problems.append("history too long")
    if record.last_reviewed is not None and MasteryLevel.NEW <= record.mastery_level <= MasteryLevel.PERMANENT:
        if record.next_review != next_review_for(record.mastery_level, record.last_reviewed):
            problems.append("next review does not match mastery interval")
    return problems


def validate_record(record: WordRecord) -> WordRecord:
    """Raise CorruptRecord when the record violates an invariant."""
    problems = check_record(record)
    if problems:
        raise CorruptRecord(record.key, problems)
    return record


def heal_record(record: WordRecord) -> Tuple[WordRecord, List[str]]:
    """Repair a stored record, returning it with the list of problems fixed."""
    try:
        return validate_record(record), []
    except CorruptRecord as error:
        problems = error.problems

    level = min(max(int(record.mastery_level), MasteryLevel.NEW), MasteryLevel.PERMANENT)
    correct_count = max(0, record.correct_count)
    incorrect_count = max(0, record.incorrect_count)
    if correct_count > 0 and incorrect_count == 0 and level < MasteryLevel.FAMILIAR:
        level = MasteryLevel.FAMILIAR

    next_review = record.next_review
    if record.last_reviewed is not None:
        next_review = next_review_for(level, record.last_reviewed)

    healed = replace(
        record,
        mastery_level=MasteryLevel(level),
        review_count=correct_count + incorrect_count,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        next_review=next_review,
        history=[entry for entry in record.history if entry.date is not None][-settings.learning.history_limit:],
    )
    logger.warning(f"Healed corrupt record {record.key}: {', '.join(problems)}")
    return healed, problems
