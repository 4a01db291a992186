"""Persistence of account snapshots in a SQL database.

The same store class backs both tiers: the local cache database and, when
configured, the authoritative remote database.
"""
import logging
from datetime import date
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine

from petwords.errors import TransientRemoteFailure
from petwords.models.base import init_db, make_engine, make_session_factory
from petwords.models.models import AccountDocument
from petwords.models.progress_models import (
    AccountSnapshot,
    QuizRecord,
    StudySessionLog,
    WordRecord,
    parse_topic_progress,
    resolve_topic_progress,
)
from petwords.monitoring import healed_records
from petwords.services.mastery_engine import heal_record
from petwords.services.progress_aggregator import refresh_topics

logger = logging.getLogger(__name__)

STORE_ERRORS = (SQLAlchemyError, OSError)


def _date(value: Any) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def snapshot_from_dict(data: Dict[str, Any], account_id: Optional[str] = None) -> AccountSnapshot:
    """Build a snapshot from a stored document, repairing what it can."""
    account_id = account_id or str(data["accountId"])
    snapshot = AccountSnapshot(
        account_id=account_id,
        display_name=data.get("displayName"),
        start_date=_date(data.get("startDate")),
        current_streak=max(0, int(data.get("currentStreak") or 0)),
        longest_streak=max(0, int(data.get("longestStreak") or 0)),
        total_days_studied=max(0, int(data.get("totalDaysStudied") or 0)),
        last_study_str=_date(data.get("lastStudyStr")),
        total_quizzes=max(0, int(data.get("totalQuizzes") or 0)),
        average_score=int(data.get("averageScore") or 0),
    )

    for key, raw in (data.get("wordLearning") or {}).items():
        try:
            record = WordRecord.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Dropping unreadable record {key} of account {account_id}: {e}")
            continue
        record, problems = heal_record(record)
        if problems:
            healed_records.inc()
        snapshot.word_learning[record.key] = record

    for topic_id, raw in (data.get("topicProgress") or {}).items():
        try:
            stored = parse_topic_progress(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring topic progress {topic_id} of account {account_id}: {e}")
            continue
        progress = resolve_topic_progress(stored)
        if isinstance(raw, dict) and len(progress.study_days) != len(raw.get("studyDays") or []):
            logger.warning(f"Dropped unreadable study days of topic {topic_id} of account {account_id}")
            healed_records.inc()
        snapshot.topic_progress[topic_id] = progress

    for raw in data.get("quizHistory") or []:
        try:
            snapshot.quiz_history.append(QuizRecord.from_dict(raw))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring quiz entry of account {account_id}: {e}")

    for raw in data.get("studySessions") or []:
        try:
            snapshot.study_sessions.append(StudySessionLog.from_dict(raw))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring study session of account {account_id}: {e}")

    snapshot.longest_streak = max(snapshot.longest_streak, snapshot.current_streak)
    refresh_topics(snapshot)
    return snapshot


class SqlSnapshotStore:
    """Load and save account snapshots through SQLAlchemy."""

    def __init__(self, engine: Engine, name: str = "local"):
        """Initialize the store with a database engine."""
        self.engine = engine
        self.session_factory = make_session_factory(engine)
        self.name = name
        self._schema_ready = False

    @classmethod
    def from_url(cls, url: str, name: str = "local", timeout: Optional[float] = None) -> "SqlSnapshotStore":
        return cls(make_engine(url, timeout), name=name)

    def _ensure_schema(self) -> None:
        if not self._schema_ready:
            init_db(self.engine)
            self._schema_ready = True

    def load(self, account_id: str) -> Optional[AccountSnapshot]:
        """Load a snapshot, or None when the account has none stored."""
        try:
            self._ensure_schema()
            with self.session_factory() as db:
                document = (
                    db.query(AccountDocument)
                    .filter(AccountDocument.account_id == account_id)
                    .first()
                )
                payload = dict(document.payload) if document else None
        except STORE_ERRORS as e:
            raise TransientRemoteFailure("load", account_id, f"{self.name}: {e}") from e

        if payload is None:
            return None
        return snapshot_from_dict(payload, account_id)

    def save(self, account_id: str, snapshot: AccountSnapshot) -> bool:
        """Upsert a snapshot; returns False when the database rejected it."""
        payload = snapshot.to_dict()
        try:
            self._ensure_schema()
            with self.session_factory() as db:
                document = (
                    db.query(AccountDocument)
                    .filter(AccountDocument.account_id == account_id)
                    .first()
                )
                if document is None:
                    document = AccountDocument(account_id=account_id)
                    db.add(document)
                document.display_name = snapshot.display_name
                document.total_words_learned = snapshot.total_words_learned
                document.payload = payload
                db.commit()
        except STORE_ERRORS as e:
            logger.warning(f"Could not save account {account_id} to {self.name} store: {e}")
            return False
        return True

    def iter_snapshots(self) -> Iterator[AccountSnapshot]:
        """Iterate over every stored account, most learned words first."""
        try:
            self._ensure_schema()
            with self.session_factory() as db:
                documents = [
                    (document.account_id, dict(document.payload))
                    for document in db.query(AccountDocument)
                    .order_by(AccountDocument.total_words_learned.desc())
                    .all()
                ]
        except STORE_ERRORS as e:
            raise TransientRemoteFailure("list", "*", f"{self.name}: {e}") from e

        for account_id, payload in documents:
            yield snapshot_from_dict(payload, account_id)
