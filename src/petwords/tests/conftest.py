"""Test configuration."""
import json
import os
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from petwords.errors import TransientRemoteFailure
from petwords.models.progress_models import AccountSnapshot
from petwords.services.clock import FixedClock
from petwords.services.learning_service import LearningService
from petwords.services.snapshot_store import SqlSnapshotStore
from petwords.services.vocabulary_service import VocabularyService


class UnreachableStore:
    """A remote tier that never answers."""

    def __init__(self):
        self.load_calls = 0
        self.save_calls = 0

    def load(self, account_id: str) -> Optional[AccountSnapshot]:
        self.load_calls += 1
        raise TransientRemoteFailure("load", account_id, "connection timed out")

    def save(self, account_id: str, snapshot: AccountSnapshot) -> bool:
        self.save_calls += 1
        return False

    def iter_snapshots(self) -> Iterator[AccountSnapshot]:
        raise TransientRemoteFailure("list", "*", "connection timed out")


@pytest.fixture
def today() -> date:
    return date(2026, 3, 2)


@pytest.fixture
def clock(today: date) -> FixedClock:
    return FixedClock(today)


@pytest.fixture
def local_store() -> SqlSnapshotStore:
    """A fresh in-memory local tier."""
    return SqlSnapshotStore.from_url("sqlite://", name="local")


@pytest.fixture
def remote_store() -> SqlSnapshotStore:
    """A fresh in-memory authoritative tier."""
    return SqlSnapshotStore.from_url("sqlite://", name="remote")


@pytest.fixture
def unreachable_store() -> UnreachableStore:
    return UnreachableStore()


@pytest.fixture
def vocabulary(tmp_path: Path) -> VocabularyService:
    """Vocabulary with one topic of three words."""
    index = {
        "topics": [{"id": "animals", "name": "Animals", "file": "animals.json", "wordCount": 3}],
        "totalWords": 3,
    }
    words = {
        "topic": {"id": "animals", "name": "Animals"},
        "words": [
            {"id": "cat", "english": "cat", "chinese": "猫", "example": "", "exampleChinese": ""},
            {"id": "dog", "english": "dog", "chinese": "狗", "example": "", "exampleChinese": ""},
            {"id": "w3", "english": "guinea pig", "chinese": "豚鼠", "example": "", "exampleChinese": ""},
        ],
    }
    (tmp_path / "index.json").write_text(json.dumps(index), encoding="utf-8")
    (tmp_path / "animals.json").write_text(json.dumps(words, ensure_ascii=False), encoding="utf-8")
    return VocabularyService(tmp_path)


@pytest.fixture
def service(local_store, remote_store, clock, vocabulary) -> LearningService:
    return LearningService(local=local_store, remote=remote_store, clock=clock, vocabulary=vocabulary)
