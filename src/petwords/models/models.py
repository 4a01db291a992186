"""Database models for stored account snapshots."""
from sqlalchemy import JSON, Column, Integer, String

from petwords.models.base import Base, TimestampMixin


class AccountDocument(Base, TimestampMixin):
    """One account's whole learning state, stored as a JSON document."""

    __tablename__ = "account_documents"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=True)
    total_words_learned = Column(Integer, default=0)  # projection, recomputed on save
    payload = Column(JSON, nullable=False)
