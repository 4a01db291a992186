"""Models for word records and the progress derived from them."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union


class MasteryLevel(IntEnum):
    """Retention strength of a word, from just seen to long-term memory."""
    NEW = 0
    LEARNING = 1
    FAMILIAR = 2
    CONFIDENT = 3
    MASTERED = 4
    PERMANENT = 5


def word_key(topic_id: str, word_id: str) -> str:
    """Build the storage key of a word record."""
    return f"{topic_id}_{word_id}"


def _date_or_none(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _readable_days(values: Any) -> List[date]:
    """Parse a list of stored days, dropping blank or malformed ones."""
    if not isinstance(values, list):
        return []
    days = []
    for value in values:
        try:
            day = _date_or_none(value)
        except (TypeError, ValueError):
            day = None
        if day is not None:
            days.append(day)
    return days


def _iso_or_none(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    return int(float(value))


@dataclass
class HistoryEntry:
    """One review in a word's history."""
    date: Optional[date]
    correct: bool
    mastery_level: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "correct": self.correct,
            "masteryLevel": self.mastery_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        """Parse a stored entry; an unreadable one comes back without a date."""
        try:
            return cls(
                date=_date_or_none(data.get("date")),
                correct=bool(data.get("correct", False)),
                mastery_level=_int(data.get("masteryLevel")),
            )
        except (AttributeError, TypeError, ValueError):
            return cls(date=None, correct=False, mastery_level=MasteryLevel.NEW)


@dataclass
class WordRecord:
    """Learning state of one word for one account."""
    topic_id: str
    word_id: str
    mastery_level: int = MasteryLevel.NEW
    first_learned: Optional[date] = None
    last_reviewed: Optional[date] = None
    next_review: Optional[date] = None
    review_count: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    history: List[HistoryEntry] = field(default_factory=list)

    @property
    def key(self) -> str:
        return word_key(self.topic_id, self.word_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topicId": self.topic_id,
            "wordId": self.word_id,
            "masteryLevel": int(self.mastery_level),
            "firstLearned": _iso_or_none(self.first_learned),
            "lastReviewed": _iso_or_none(self.last_reviewed),
            "nextReview": _iso_or_none(self.next_review),
            "reviewCount": self.review_count,
            "correctCount": self.correct_count,
            "incorrectCount": self.incorrect_count,
            "history": [entry.to_dict() for entry in self.history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordRecord":
        """Parse a stored record without checking its invariants."""
        return cls(
            topic_id=str(data["topicId"]),
            word_id=str(data["wordId"]),
            mastery_level=_int(data.get("masteryLevel")),
            first_learned=_date_or_none(data.get("firstLearned")),
            last_reviewed=_date_or_none(data.get("lastReviewed")),
            next_review=_date_or_none(data.get("nextReview")),
            review_count=_int(data.get("reviewCount")),
            correct_count=_int(data.get("correctCount")),
            incorrect_count=_int(data.get("incorrectCount")),
            history=[HistoryEntry.from_dict(entry) for entry in data.get("history") or []],
        )


@dataclass
class TopicProgress:
    """Progress summary of one topic, derived from its word records."""
    words_learned: int = 0
    words_studied: int = 0
    average_mastery: float = 0.0
    quizzes_taken: int = 0
    best_quiz_score: int = 0
    total_quiz_score: int = 0
    average_quiz_score: int = 0
    last_quiz_date: Optional[date] = None
    study_days: List[date] = field(default_factory=list)
    first_studied: Optional[date] = None
    last_studied: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wordsLearned": self.words_learned,
            "wordsStudied": self.words_studied,
            "averageMastery": self.average_mastery,
            "quizzesTaken": self.quizzes_taken,
            "bestQuizScore": self.best_quiz_score,
            "totalQuizScore": self.total_quiz_score,
            "averageQuizScore": self.average_quiz_score,
            "lastQuizDate": _iso_or_none(self.last_quiz_date),
            "studyDays": [day.isoformat() for day in self.study_days],
            "firstStudied": _iso_or_none(self.first_studied),
            "lastStudied": _iso_or_none(self.last_studied),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicProgress":
        return cls(
            words_learned=_int(data.get("wordsLearned")),
            words_studied=_int(data.get("wordsStudied")),
            average_mastery=float(data.get("averageMastery") or 0),
            quizzes_taken=_int(data.get("quizzesTaken")),
            best_quiz_score=_int(data.get("bestQuizScore")),
            total_quiz_score=_int(data.get("totalQuizScore")),
            average_quiz_score=_int(data.get("averageQuizScore")),
            last_quiz_date=_date_or_none(data.get("lastQuizDate")),
            study_days=_readable_days(data.get("studyDays")),
            first_studied=_date_or_none(data.get("firstStudied")),
            last_studied=_date_or_none(data.get("lastStudied")),
        )


@dataclass(frozen=True)
class LegacyCount:
    """Old topic progress format: a bare learned-word count."""
    count: int


@dataclass(frozen=True)
class DetailedProgress:
    """Current topic progress format."""
    progress: TopicProgress


StoredTopicProgress = Union[LegacyCount, DetailedProgress]


def parse_topic_progress(raw: Any) -> StoredTopicProgress:
    """Tag a stored topic progress value with its format."""
    if isinstance(raw, dict):
        return DetailedProgress(TopicProgress.from_dict(raw))
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return LegacyCount(max(0, int(raw)))
    raise ValueError(f"Unsupported topic progress value: {raw!r}")


def resolve_topic_progress(stored: StoredTopicProgress) -> TopicProgress:
    """Turn either stored format into a TopicProgress."""
    if isinstance(stored, LegacyCount):
        return TopicProgress(words_learned=stored.count)
    return stored.progress


@dataclass
class QuizRecord:
    """Result of one finished quiz."""
    topic_id: str
    taken_at: datetime
    date_str: date
    score: int
    total_questions: int
    percentage: int
    wrong_words: List[str] = field(default_factory=list)
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topicId": self.topic_id,
            "date": self.taken_at.isoformat(),
            "dateStr": self.date_str.isoformat(),
            "score": self.score,
            "totalQuestions": self.total_questions,
            "percentage": self.percentage,
            "wrongWords": list(self.wrong_words),
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizRecord":
        taken_at = datetime.fromisoformat(data["date"].replace("Z", "+00:00"))
        return cls(
            topic_id=str(data["topicId"]),
            taken_at=taken_at,
            date_str=_date_or_none(data.get("dateStr")) or taken_at.date(),
            score=_int(data.get("score")),
            total_questions=_int(data.get("totalQuestions")),
            percentage=_int(data.get("percentage")),
            wrong_words=[str(word) for word in data.get("wrongWords") or []],
            duration=data.get("duration"),
        )


@dataclass
class StudySessionLog:
    """One study session (flashcards, quiz, story reading...)."""
    topic_id: str
    mode: str
    words_studied: int
    timestamp: datetime
    date: date
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topicId": self.topic_id,
            "mode": self.mode,
            "wordsStudied": self.words_studied,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat(),
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudySessionLog":
        timestamp = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        return cls(
            topic_id=str(data["topicId"]),
            mode=str(data.get("mode", "")),
            words_studied=_int(data.get("wordsStudied")),
            timestamp=timestamp,
            date=_date_or_none(data.get("date")) or timestamp.date(),
            duration=data.get("duration"),
        )


@dataclass
class StreakSnapshot:
    """Streak counters after a study activity."""
    current_streak: int
    longest_streak: int
    total_days_studied: int


@dataclass
class AccountProgress:
    """Account-wide progress, assembled from the snapshot on demand."""
    total_words_learned: int
    current_streak: int
    longest_streak: int
    total_days_studied: int
    last_study_str: Optional[date]
    average_score: int
    total_quizzes: int
    quiz_history: List[QuizRecord] = field(default_factory=list)


@dataclass
class AccountSnapshot:
    """Everything stored for one account.

    This is the document both persistence tiers load and save. The
    account-wide learned word count is never kept here; it is always summed
    from ``topic_progress``.
    """
    account_id: str
    display_name: Optional[str] = None
    start_date: Optional[date] = None
    current_streak: int = 0
    longest_streak: int = 0
    total_days_studied: int = 0
    last_study_str: Optional[date] = None
    word_learning: Dict[str, WordRecord] = field(default_factory=dict)
    topic_progress: Dict[str, TopicProgress] = field(default_factory=dict)
    quiz_history: List[QuizRecord] = field(default_factory=list)
    total_quizzes: int = 0
    average_score: int = 0
    study_sessions: List[StudySessionLog] = field(default_factory=list)

    @property
    def total_words_learned(self) -> int:
        return sum(progress.words_learned for progress in self.topic_progress.values())

    def records_for_topic(self, topic_id: str) -> List[WordRecord]:
        return [record for record in self.word_learning.values() if record.topic_id == topic_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountId": self.account_id,
            "displayName": self.display_name,
            "startDate": _iso_or_none(self.start_date),
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalDaysStudied": self.total_days_studied,
            "lastStudyStr": _iso_or_none(self.last_study_str),
            # Read-only projection for listings; ignored when loading.
            "totalWordsLearned": self.total_words_learned,
            "wordLearning": {key: record.to_dict() for key, record in self.word_learning.items()},
            "topicProgress": {
                topic_id: progress.to_dict() for topic_id, progress in self.topic_progress.items()
            },
            "quizHistory": [quiz.to_dict() for quiz in self.quiz_history],
            "totalQuizzes": self.total_quizzes,
            "averageScore": self.average_score,
            "studySessions": [session.to_dict() for session in self.study_sessions],
        }
