"""Database engine and session management."""

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from clubpass.core.config import settings


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # needed for SQLite + threads
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args)


engine = make_engine(settings.DATABASE_URL)

# Objects stay readable after commit; the engine re-reads rows explicitly
# whenever freshness matters.
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base class for declarative models."""


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
