"""Tests for database models."""
from typing import Generator

import pytest
from faker import Faker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from petwords.models.base import init_db, make_engine, make_session_factory
from petwords.models.models import AccountDocument

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh in-memory database session for each test."""
    engine = make_engine("sqlite://")
    init_db(engine)
    db = make_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


def test_account_document_creation(db: Session) -> None:
    """Test account document creation."""
    account_id = fake.user_name()
    document = AccountDocument(
        account_id=account_id,
        display_name=fake.name(),
        payload={"accountId": account_id, "wordLearning": {}},
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    assert document.id is not None
    assert document.total_words_learned == 0
    assert document.created_at is not None
    assert document.payload["accountId"] == account_id


def test_payload_round_trips_json(db: Session) -> None:
    payload = {
        "accountId": "alice",
        "topicProgress": {"animals": {"wordsLearned": 3, "studyDays": ["2026-03-02"]}},
        "quizHistory": [{"topicId": "animals", "percentage": 80}],
    }
    db.add(AccountDocument(account_id="alice", payload=payload, total_words_learned=3))
    db.commit()
    db.expunge_all()

    stored = db.query(AccountDocument).filter(AccountDocument.account_id == "alice").one()
    assert stored.payload == payload
    assert stored.total_words_learned == 3


def test_account_id_is_unique(db: Session) -> None:
    db.add(AccountDocument(account_id="alice", payload={}))
    db.commit()

    db.add(AccountDocument(account_id="alice", payload={}))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


if __name__ == "__main__":
    pytest.main([__file__])
