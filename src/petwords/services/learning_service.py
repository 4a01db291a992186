"""Learning service: the entry point for review, quiz and progress operations."""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from petwords.config import settings
from petwords.errors import InvalidOutcomeInput, TransientRemoteFailure, WordNotFound
from petwords.models.base import engine
from petwords.models.progress_models import (
    AccountProgress,
    QuizRecord,
    StreakSnapshot,
    StudySessionLog,
    TopicProgress,
    WordRecord,
)
from petwords.monitoring import quiz_percentage, quizzes_recorded, reviews_recorded, reviews_skipped
from petwords.services import due_selector, progress_aggregator
from petwords.services.clock import Clock, SystemClock
from petwords.services.mastery_engine import apply_outcome, new_record
from petwords.services.snapshot_store import SqlSnapshotStore
from petwords.services.streak_tracker import current_streak, on_study_activity
from petwords.services.vocabulary_service import VocabularyService
from petwords.services.word_record_store import SnapshotStore, WordRecordStore

logger = logging.getLogger(__name__)

STUDY_MODES = ("flashcard", "quiz", "story", "library", "review")


@dataclass
class StudyContext:
    """The signed-in account an operation runs for."""
    account_id: Optional[str]
    display_name: Optional[str] = None
    store: Optional[WordRecordStore] = None

    @property
    def is_authenticated(self) -> bool:
        return self.store is not None


@dataclass
class ReviewResult:
    """What happened to one review outcome."""
    record: Optional[WordRecord]
    degraded: bool = False
    skipped: bool = False
    streak: Optional[StreakSnapshot] = None
    reason: Optional[str] = None


@dataclass
class QuizResult:
    """A recorded quiz and the word records it marked for review."""
    quiz: QuizRecord
    reviewed: List[WordRecord]
    degraded: bool = False
    streak: Optional[StreakSnapshot] = None


class LearningService:
    """Service for recording learning events and reading progress."""

    def __init__(
        self,
        local: SnapshotStore,
        remote: Optional[SnapshotStore] = None,
        clock: Optional[Clock] = None,
        vocabulary: Optional[VocabularyService] = None,
    ):
        """Initialize the service with its storage tiers and collaborators."""
        self.local = local
        self.remote = remote
        self.clock = clock or SystemClock()
        self.vocabulary = vocabulary

    @classmethod
    def from_settings(cls, vocabulary: Optional[VocabularyService] = None) -> "LearningService":
        """Build the service from the configured databases."""
        remote = None
        if settings.database.remote_url:
            remote = SqlSnapshotStore.from_url(
                settings.database.remote_url,
                name="remote",
                timeout=settings.database.remote_timeout_seconds,
            )
        return cls(
            local=SqlSnapshotStore(engine, name="local"),
            remote=remote,
            vocabulary=vocabulary or VocabularyService(),
        )

    def open_context(self, account_id: Optional[str], display_name: Optional[str] = None) -> StudyContext:
        """Create the context for an account; a blank id gives an anonymous context."""
        account_id = account_id.strip() if account_id else None
        if not account_id:
            return StudyContext(account_id=None)
        store = WordRecordStore(
            account_id,
            local=self.local,
            remote=self.remote,
            display_name=display_name or account_id,
            today=self.clock.today(),
        )
        return StudyContext(account_id=account_id, display_name=display_name, store=store)

    def _require_store(self, ctx: StudyContext) -> WordRecordStore:
        if not ctx.is_authenticated:
            raise InvalidOutcomeInput("No account is signed in")
        return ctx.store

    def _canonical_word_id(self, topic_id: str, word_id: str) -> str:
        """The vocabulary id a word is stored under; raises WordNotFound."""
        if self.vocabulary is None:
            return word_id
        return self.vocabulary.get_word(topic_id, word_id).id

    def _apply(self, store: WordRecordStore, topic_id: str, word_id: str, is_correct: bool, today: date) -> WordRecord:
        record = store.get(topic_id, word_id) or new_record(topic_id, word_id, today)
        updated = apply_outcome(record, is_correct, today)
        store.upsert(updated, today)
        reviews_recorded.labels(outcome="correct" if is_correct else "incorrect").inc()
        logger.info(
            f"Word {updated.key} of {store.account_id}: mastery {int(record.mastery_level)} -> "
            f"{int(updated.mastery_level)}, next review {updated.next_review}"
        )
        return updated

    def record_outcome(self, ctx: StudyContext, topic_id: str, word_id: str, is_correct: bool) -> ReviewResult:
        """Record a learning, quiz or review outcome for one word."""
        store = self._require_store(ctx)
        try:
            word_id = self._canonical_word_id(topic_id, word_id)
        except WordNotFound as e:
            reviews_skipped.inc()
            logger.info(f"Skipping outcome: {e}")
            return ReviewResult(record=None, skipped=True, reason=str(e))

        today = self.clock.today()
        record = self._apply(store, topic_id, word_id, is_correct, today)
        streak = on_study_activity(store.snapshot, today)
        result = store.save()
        return ReviewResult(record=record, degraded=result.degraded, streak=streak)

    def mark_word_learned(self, ctx: StudyContext, topic_id: str, word_id: str) -> ReviewResult:
        return self.record_outcome(ctx, topic_id, word_id, True)

    def mark_word_needs_review(self, ctx: StudyContext, topic_id: str, word_id: str) -> ReviewResult:
        return self.record_outcome(ctx, topic_id, word_id, False)

    def record_quiz_result(
        self,
        ctx: StudyContext,
        topic_id: str,
        score: int,
        total_questions: int,
        wrong_words: Optional[List[str]] = None,
    ) -> QuizResult:
        """Record a finished quiz; every wrong word counts as a missed review."""
        store = self._require_store(ctx)
        today = self.clock.today()
        quiz = progress_aggregator.ingest_quiz(
            store.snapshot,
            topic_id,
            score,
            total_questions,
            wrong_words,
            now=self.clock.now(),
            today=today,
        )
        quizzes_recorded.inc()
        quiz_percentage.observe(quiz.percentage)

        reviewed = []
        for word_id in quiz.wrong_words:
            try:
                word_id = self._canonical_word_id(topic_id, word_id)
            except WordNotFound as e:
                reviews_skipped.inc()
                logger.info(f"Skipping quiz word: {e}")
                continue
            reviewed.append(self._apply(store, topic_id, word_id, False, today))

        streak = on_study_activity(store.snapshot, today)
        result = store.save()
        return QuizResult(quiz=quiz, reviewed=reviewed, degraded=result.degraded, streak=streak)

    def record_study_session(
        self,
        ctx: StudyContext,
        topic_id: str,
        mode: str,
        words_studied: int,
        duration: Optional[float] = None,
    ) -> StudySessionLog:
        """Log a study session."""
        store = self._require_store(ctx)
        if mode not in STUDY_MODES:
            raise InvalidOutcomeInput(f"Unknown study mode {mode!r}")
        if words_studied < 0:
            raise InvalidOutcomeInput("words_studied cannot be negative")

        now = self.clock.now()
        session = StudySessionLog(
            topic_id=topic_id,
            mode=mode,
            words_studied=words_studied,
            duration=duration,
            timestamp=now,
            date=self.clock.today(),
        )
        snapshot = store.snapshot
        snapshot.study_sessions.append(session)
        snapshot.study_sessions = snapshot.study_sessions[-settings.learning.study_sessions_limit:]
        store.save()
        return session

    def refresh(self, ctx: StudyContext) -> bool:
        """Pull the latest data from the remote tier."""
        if not ctx.is_authenticated:
            return False
        return ctx.store.fetch_fresh()

    def due_words(
        self, ctx: StudyContext, topic_id: Optional[str] = None, refresh: bool = False
    ) -> List[due_selector.DueWord]:
        """Words to review today, in review order.

        Each item wraps the ``WordRecord`` (``item.record``) together with the
        days since its last review, which the ordering is based on.
        """
        if not ctx.is_authenticated:
            return []
        if refresh:
            ctx.store.fetch_fresh()
        return due_selector.due_words(ctx.store.records(), self.clock.today(), topic_id)

    def due_count(self, ctx: StudyContext, topic_id: Optional[str] = None) -> int:
        return len(self.due_words(ctx, topic_id))

    def topic_progress(self, ctx: StudyContext, topic_id: str) -> Optional[TopicProgress]:
        if not ctx.is_authenticated:
            return None
        return ctx.store.snapshot.topic_progress.get(topic_id)

    def account_progress(self, ctx: StudyContext) -> Optional[AccountProgress]:
        if not ctx.is_authenticated:
            return None
        return progress_aggregator.account_progress(ctx.store.snapshot)

    def streak(self, ctx: StudyContext) -> StreakSnapshot:
        if not ctx.is_authenticated:
            return StreakSnapshot(current_streak=0, longest_streak=0, total_days_studied=0)
        return current_streak(ctx.store.snapshot)

    def word_status(self, ctx: StudyContext, topic_id: str, word_id: str) -> Optional[WordRecord]:
        if not ctx.is_authenticated:
            return None
        try:
            word_id = self._canonical_word_id(topic_id, word_id)
        except WordNotFound:
            return None
        return ctx.store.get(topic_id, word_id)

    def learned_words_for_topic(self, ctx: StudyContext, topic_id: str) -> List[str]:
        if not ctx.is_authenticated:
            return []
        words = progress_aggregator.learned_words(ctx.store.snapshot, topic_id)
        logger.debug(f"Topic {topic_id}: {len(words)} learned words found")
        return words

    def quiz_history(self, ctx: StudyContext, topic_id: Optional[str] = None, limit: int = 10) -> List[QuizRecord]:
        if not ctx.is_authenticated:
            return []
        return progress_aggregator.quiz_history(ctx.store.snapshot, topic_id, limit)

    def detailed_stats(self, ctx: StudyContext) -> Optional[Dict[str, Any]]:
        if not ctx.is_authenticated:
            return None
        ctx.store.fetch_fresh()
        return progress_aggregator.detailed_stats(ctx.store.snapshot, self.clock.today())

    def leaderboard(self, limit: Optional[int] = None) -> List[progress_aggregator.LeaderboardEntry]:
        """Rank all accounts, from the remote tier when it answers."""
        if self.remote is not None:
            try:
                return progress_aggregator.leaderboard(self.remote.iter_snapshots(), limit)
            except TransientRemoteFailure as e:
                logger.warning(f"{e}; ranking local accounts")
        try:
            return progress_aggregator.leaderboard(self.local.iter_snapshots(), limit)
        except TransientRemoteFailure as e:
            logger.error(f"Could not read leaderboard: {e}")
            return []
