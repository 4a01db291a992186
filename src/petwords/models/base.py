"""Base model configuration."""
import sqlite3
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import Column, DateTime, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from petwords.config import settings


def make_engine(url: str, timeout: Optional[float] = None) -> Engine:
    """Create an engine whose connection attempts give up after ``timeout`` seconds."""
    timeout = timeout or settings.database.remote_timeout_seconds
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"timeout": timeout, "check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Keep one connection so the in-memory database survives between sessions
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {"connect_args": {"connect_timeout": int(timeout)}, "pool_timeout": timeout}
    return create_engine(url, echo=settings.database.echo, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Create SQLAlchemy engine for the local tier
engine = make_engine(settings.database.url)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Let SQLite writers wait for the lock instead of failing at once."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute(f"PRAGMA busy_timeout={int(settings.database.remote_timeout_seconds * 1000)}")
    cursor.close()


# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def init_db(bind: Optional[Engine] = None) -> None:
    """Initialize database."""
    # Register the tables before creating them
    import petwords.models.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)  # Create tables if they don't exist
