"""Tests for due word selection."""
from datetime import date, timedelta

from petwords.models.progress_models import WordRecord
from petwords.services.due_selector import due_count, due_words

TODAY = date(2026, 3, 2)


def make_record(word_id: str, level: int, last_reviewed_days_ago: int, due_in: int, topic_id: str = "animals") -> WordRecord:
    return WordRecord(
        topic_id=topic_id,
        word_id=word_id,
        mastery_level=level,
        first_learned=TODAY - timedelta(days=60),
        last_reviewed=TODAY - timedelta(days=last_reviewed_days_ago),
        next_review=TODAY + timedelta(days=due_in),
    )


def test_only_due_records_are_returned() -> None:
    records = [
        make_record("cat", 2, 4, 0),
        make_record("dog", 2, 5, -1),
        make_record("horse", 3, 1, 6),
    ]
    keys = [word.key for word in due_words(records, TODAY)]
    assert sorted(keys) == ["animals_cat", "animals_dog"]


def test_due_on_the_review_day() -> None:
    """A word is due from the start of its review day."""
    record = make_record("cat", 2, 4, 0)
    assert due_count([record], TODAY) == 1
    assert due_count([record], TODAY - timedelta(days=1)) == 0


def test_order_by_mastery_then_overdue() -> None:
    records = [
        make_record("a", 3, 7, 0),
        make_record("b", 1, 2, 0),
        make_record("c", 3, 20, -13),
        make_record("d", 1, 9, -7),
        make_record("e", 2, 4, 0),
    ]
    ordered = [word.record.word_id for word in due_words(records, TODAY)]
    assert ordered == ["d", "b", "e", "c", "a"]


def test_ties_keep_input_order() -> None:
    records = [make_record("x", 2, 4, 0), make_record("y", 2, 4, 0)]
    assert [word.record.word_id for word in due_words(records, TODAY)] == ["x", "y"]


def test_filter_by_topic() -> None:
    records = [
        make_record("cat", 2, 4, 0),
        make_record("apple", 2, 4, 0, topic_id="food"),
    ]
    due = due_words(records, TODAY, topic_id="food")
    assert [word.key for word in due] == ["food_apple"]


def test_days_since_review() -> None:
    due = due_words([make_record("cat", 2, 6, -2)], TODAY)
    assert due[0].days_since_review == 6


def test_selection_is_recomputed_each_call() -> None:
    records = [make_record("cat", 2, 4, 0)]
    assert due_words(records, TODAY) == due_words(records, TODAY)
    records.append(make_record("dog", 1, 2, 0))
    assert len(due_words(records, TODAY)) == 2
