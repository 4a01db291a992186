"""Exceptions raised by the review scheduler core."""
from typing import Optional


class PetWordsError(Exception):
    """Base class for all scheduler errors."""


class TransientRemoteFailure(PetWordsError):
    """The authoritative tier could not be read or written."""

    def __init__(self, operation: str, account_id: str, reason: Optional[str] = None):
        self.operation = operation
        self.account_id = account_id
        self.reason = reason
        message = f"Remote {operation} failed for account {account_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class WordNotFound(PetWordsError, LookupError):
    """A topic or word is missing from the vocabulary data."""

    def __init__(self, topic_id: str, word_id: Optional[str] = None):
        self.topic_id = topic_id
        self.word_id = word_id
        if word_id is None:
            super().__init__(f"Topic {topic_id} not found")
        else:
            super().__init__(f"Word {word_id} not found in topic {topic_id}")


class InvalidOutcomeInput(PetWordsError, ValueError):
    """An outcome or quiz result was rejected before any mutation."""


class CorruptRecord(PetWordsError, ValueError):
    """A stored word record violates the record invariants."""

    def __init__(self, key: str, problems: list[str]):
        self.key = key
        self.problems = problems
        super().__init__(f"Record {key} is corrupt: {', '.join(problems)}")
