"""Tests for snapshot persistence and the self-healing load path."""
from datetime import date, datetime, timedelta

import pytest
from faker import Faker

from petwords.errors import TransientRemoteFailure
from petwords.models.progress_models import AccountSnapshot, MasteryLevel, StudySessionLog
from petwords.services import progress_aggregator
from petwords.services.mastery_engine import apply_outcome, new_record
from petwords.services.snapshot_store import SqlSnapshotStore, snapshot_from_dict
from petwords.services.streak_tracker import on_study_activity

fake = Faker()
TODAY = date(2026, 3, 2)


def build_snapshot() -> AccountSnapshot:
    snapshot = AccountSnapshot(account_id=fake.user_name(), display_name="Alice", start_date=TODAY)
    for offset, (topic_id, word_id, outcomes) in enumerate(
        [
            ("animals", "cat", [True, True, True]),
            ("animals", "dog", [True, False]),
            ("food", "apple", [False]),
            ("food", "pear", [True, True, True, True, True]),
        ]
    ):
        record = new_record(topic_id, word_id, TODAY)
        for day, outcome in enumerate(outcomes):
            record = apply_outcome(record, outcome, TODAY + timedelta(days=day + offset))
        snapshot.word_learning[record.key] = record
        snapshot.topic_progress[topic_id] = progress_aggregator.recompute(
            topic_id, snapshot.records_for_topic(topic_id), snapshot.topic_progress.get(topic_id), TODAY
        )
    progress_aggregator.ingest_quiz(snapshot, "animals", 8, 10, ["dog"], now=datetime(2026, 3, 2, 10), today=TODAY)
    on_study_activity(snapshot, TODAY)
    snapshot.study_sessions.append(
        StudySessionLog(
            topic_id="animals",
            mode="flashcard",
            words_studied=2,
            timestamp=datetime(2026, 3, 2, 10),
            date=TODAY,
        )
    )
    return snapshot


def test_round_trip_keeps_aggregates() -> None:
    snapshot = build_snapshot()
    restored = snapshot_from_dict(snapshot.to_dict())

    assert restored == snapshot
    assert restored.topic_progress == snapshot.topic_progress
    assert progress_aggregator.account_progress(restored) == progress_aggregator.account_progress(snapshot)


def test_save_and_load(local_store: SqlSnapshotStore) -> None:
    snapshot = build_snapshot()
    assert local_store.save(snapshot.account_id, snapshot) is True

    loaded = local_store.load(snapshot.account_id)
    assert loaded == snapshot


def test_save_overwrites_previous_document(local_store: SqlSnapshotStore) -> None:
    snapshot = build_snapshot()
    local_store.save(snapshot.account_id, snapshot)
    snapshot.current_streak = 9
    snapshot.longest_streak = 9
    local_store.save(snapshot.account_id, snapshot)

    assert local_store.load(snapshot.account_id).current_streak == 9


def test_load_missing_account(local_store: SqlSnapshotStore) -> None:
    assert local_store.load("nobody") is None


def test_unreachable_database_raises_transient_failure(tmp_path) -> None:
    store = SqlSnapshotStore.from_url(f"sqlite:///{tmp_path}/missing/dir/petwords.db", name="remote", timeout=1)

    with pytest.raises(TransientRemoteFailure):
        store.load("alice")
    assert store.save("alice", AccountSnapshot(account_id="alice")) is False


def test_load_heals_corrupt_records() -> None:
    payload = build_snapshot().to_dict()
    cat = payload["wordLearning"]["animals_cat"]
    cat["masteryLevel"] = 11
    cat["incorrectCount"] = -2
    dog = payload["wordLearning"]["animals_dog"]
    dog["reviewCount"] = 40

    restored = snapshot_from_dict(payload)

    cat_record = restored.word_learning["animals_cat"]
    assert cat_record.mastery_level == MasteryLevel.PERMANENT
    assert cat_record.incorrect_count == 0
    assert (cat_record.next_review - cat_record.last_reviewed).days == 30
    dog_record = restored.word_learning["animals_dog"]
    assert dog_record.review_count == dog_record.correct_count + dog_record.incorrect_count


def test_load_repairs_old_mastery_data() -> None:
    """Words answered correctly under the old rules are lifted to FAMILIAR."""
    payload = {
        "accountId": "bob",
        "wordLearning": {
            "animals_cat": {
                "topicId": "animals",
                "wordId": "cat",
                "masteryLevel": 1,
                "firstLearned": "2026-02-01",
                "lastReviewed": "2026-02-01",
                "nextReview": "2026-02-03",
                "reviewCount": 1,
                "correctCount": 1,
                "incorrectCount": 0,
                "history": [],
            }
        },
        "topicProgress": {"animals": {"wordsLearned": 0, "wordsStudied": 1}},
    }

    restored = snapshot_from_dict(payload)

    assert restored.word_learning["animals_cat"].mastery_level == MasteryLevel.FAMILIAR
    assert restored.word_learning["animals_cat"].next_review == date(2026, 2, 5)
    assert restored.topic_progress["animals"].words_learned == 1
    assert restored.total_words_learned == 1


def test_load_resolves_legacy_topic_counts() -> None:
    payload = {
        "accountId": "carol",
        "totalWordsLearned": 99,
        "topicProgress": {"animals": 12, "food": {"wordsLearned": 3, "wordsStudied": 5}},
    }

    restored = snapshot_from_dict(payload)

    assert restored.topic_progress["animals"].words_learned == 12
    assert restored.topic_progress["food"].words_studied == 5
    assert restored.total_words_learned == 15


def test_legacy_count_is_recounted_from_records() -> None:
    payload = build_snapshot().to_dict()
    payload["topicProgress"]["animals"] = 40

    restored = snapshot_from_dict(payload)

    assert restored.topic_progress["animals"].words_learned == 1
    assert restored.topic_progress["animals"].words_studied == 2


def test_unreadable_entries_are_dropped() -> None:
    payload = build_snapshot().to_dict()
    payload["wordLearning"]["broken"] = {"masteryLevel": 2}
    payload["topicProgress"]["weird"] = "lots"
    payload["quizHistory"].append({"topicId": "animals"})

    restored = snapshot_from_dict(payload)

    assert "broken" not in restored.word_learning
    assert "weird" not in restored.topic_progress
    assert len(restored.quiz_history) == 1


def test_iter_snapshots_orders_by_learned_words(local_store: SqlSnapshotStore) -> None:
    rich = build_snapshot()
    poor = AccountSnapshot(account_id="newcomer")
    local_store.save(poor.account_id, poor)
    local_store.save(rich.account_id, rich)

    assert [snapshot.account_id for snapshot in local_store.iter_snapshots()] == [rich.account_id, "newcomer"]


def test_blank_history_dates_and_study_days_are_dropped(local_store: SqlSnapshotStore) -> None:
    snapshot = build_snapshot()
    payload = snapshot.to_dict()
    payload["wordLearning"]["animals_cat"]["history"] += [{"date": ""}, {"date": None}, "garbled"]
    payload["topicProgress"]["animals"]["studyDays"] += [None, "", "someday"]

    restored = snapshot_from_dict(payload)

    assert restored.word_learning["animals_cat"] == snapshot.word_learning["animals_cat"]
    assert restored.topic_progress["animals"].study_days == snapshot.topic_progress["animals"].study_days
    assert local_store.save(restored.account_id, restored) is True
    assert local_store.load(restored.account_id) == snapshot


def test_history_entry_without_date_keeps_the_record() -> None:
    payload = build_snapshot().to_dict()
    dog = payload["wordLearning"]["animals_dog"]
    dog["history"] = [{"correct": True, "masteryLevel": 2}]

    restored = snapshot_from_dict(payload)

    dog_record = restored.word_learning["animals_dog"]
    assert dog_record.history == []
    assert dog_record.mastery_level == dog["masteryLevel"]
    assert dog_record.review_count == 2
