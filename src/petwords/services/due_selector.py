"""Selection of words due for review."""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from petwords.models.progress_models import WordRecord


@dataclass
class DueWord:
    """A word record that should be reviewed, with how long ago it was last seen."""
    record: WordRecord
    days_since_review: int

    @property
    def key(self) -> str:
        return self.record.key


def days_since_review(record: WordRecord, today: date) -> int:
    if record.last_reviewed is None:
        return 0
    return abs((today - record.last_reviewed).days)


def is_due(record: WordRecord, today: date) -> bool:
    return record.next_review is not None and record.next_review <= today


def due_words(
    records: Iterable[WordRecord],
    today: date,
    topic_id: Optional[str] = None,
) -> List[DueWord]:
    """Due words, least mastered first and most overdue first within a level."""
    due = [
        DueWord(record=record, days_since_review=days_since_review(record, today))
        for record in records
        if (topic_id is None or record.topic_id == topic_id) and is_due(record, today)
    ]
    due.sort(key=lambda word: (word.record.mastery_level, -word.days_since_review))
    return due


def due_count(records: Iterable[WordRecord], today: date, topic_id: Optional[str] = None) -> int:
    return len(due_words(records, today, topic_id))
