"""Per-account word record storage over an authoritative tier and a local cache."""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterator, List, Optional, Protocol

from petwords.errors import TransientRemoteFailure
from petwords.models.progress_models import AccountSnapshot, WordRecord, word_key
from petwords.monitoring import degraded_operations
from petwords.services.progress_aggregator import recompute

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    def load(self, account_id: str) -> Optional[AccountSnapshot]: ...

    def save(self, account_id: str, snapshot: AccountSnapshot) -> bool: ...

    def iter_snapshots(self) -> Iterator[AccountSnapshot]: ...


@dataclass
class StoreResult:
    """Outcome of a write; ``degraded`` means only the local tier has it."""
    degraded: bool


class WordRecordStore:
    """Word records of one account.

    The remote tier is the source of truth whenever it answers. The local
    tier holds the last known copy and takes over when the remote tier is
    unreachable or not configured. Whole snapshots replace each other; fields
    are never merged across tiers.
    """

    def __init__(
        self,
        account_id: str,
        local: SnapshotStore,
        remote: Optional[SnapshotStore] = None,
        display_name: Optional[str] = None,
        today: Optional[date] = None,
    ):
        """Initialize the store; nothing is loaded until first use."""
        self.account_id = account_id
        self.local = local
        self.remote = remote
        self.display_name = display_name
        self.today = today
        self.degraded = False
        self._snapshot: Optional[AccountSnapshot] = None

    @property
    def snapshot(self) -> AccountSnapshot:
        if self._snapshot is None:
            self._snapshot = self._load()
        return self._snapshot

    def _load_remote(self, operation: str) -> Optional[AccountSnapshot]:
        """Read the remote tier; raises TransientRemoteFailure when it is down."""
        try:
            snapshot = self.remote.load(self.account_id)
        except TransientRemoteFailure as e:
            self.degraded = True
            degraded_operations.labels(operation=operation).inc()
            logger.warning(f"{e}; using local data")
            raise
        self.degraded = False
        return snapshot

    def _load(self) -> AccountSnapshot:
        snapshot = None
        if self.remote is not None:
            try:
                snapshot = self._load_remote("load")
            except TransientRemoteFailure:
                snapshot = None
            else:
                if snapshot is not None:
                    self.local.save(self.account_id, snapshot)

        if snapshot is None:
            snapshot = self.local.load(self.account_id)

        if snapshot is None:
            logger.info(f"Starting new snapshot for account {self.account_id}")
            snapshot = AccountSnapshot(
                account_id=self.account_id,
                display_name=self.display_name,
                start_date=self.today,
            )
        return snapshot

    def fetch_fresh(self) -> bool:
        """Refresh the view from the remote tier; the cached view stays on failure."""
        if self.remote is None:
            return False
        try:
            snapshot = self._load_remote("fetch")
        except TransientRemoteFailure:
            return False

        if snapshot is not None:
            self._snapshot = snapshot
            self.local.save(self.account_id, snapshot)
            logger.debug(f"Fetched fresh data for account {self.account_id}")
        return True

    def get(self, topic_id: str, word_id: str) -> Optional[WordRecord]:
        return self.snapshot.word_learning.get(word_key(topic_id, word_id))

    def records(self, topic_id: Optional[str] = None) -> List[WordRecord]:
        if topic_id is None:
            return list(self.snapshot.word_learning.values())
        return self.snapshot.records_for_topic(topic_id)

    def upsert(self, record: WordRecord, today: date) -> None:
        """Store a record in the view and recount its topic, without persisting."""
        snapshot = self.snapshot
        snapshot.word_learning[record.key] = record
        snapshot.topic_progress[record.topic_id] = recompute(
            record.topic_id,
            snapshot.records_for_topic(record.topic_id),
            previous=snapshot.topic_progress.get(record.topic_id),
            today=today,
        )

    def put(self, record: WordRecord, today: date) -> StoreResult:
        """Store a record, recount its topic and persist the snapshot."""
        self.upsert(record, today)
        return self.save()

    def save(self) -> StoreResult:
        """Persist the current view to both tiers.

        The whole view is written, including one loaded from the local tier
        while the remote was unreachable.
        """
        snapshot = self.snapshot
        degraded = False
        if self.remote is not None and not self.remote.save(self.account_id, snapshot):
            degraded = True
            degraded_operations.labels(operation="save").inc()
            logger.warning(f"Remote save failed for account {self.account_id}; kept locally")

        if not self.local.save(self.account_id, snapshot):
            logger.error(f"Local save failed for account {self.account_id}")

        self.degraded = degraded
        return StoreResult(degraded=degraded)
