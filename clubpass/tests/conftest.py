import itertools

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from clubpass.core.config import settings
from clubpass.database.db import Base, get_db
from clubpass.main import app

# Import models so that they register with Base.metadata
from clubpass.models.bookings import Booking  # noqa: F401
from clubpass.models.events import Event

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    """Extra sessions on the same in-memory database."""
    return TestingSessionLocal


@pytest.fixture
def db_session():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the database dependency
def override_get_db():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def redis_client(monkeypatch: pytest.MonkeyPatch, fake_redis):
    """Route the booking lock to an in-process Redis."""
    monkeypatch.setattr("clubpass.services.bookings.get_redis_client", lambda: fake_redis)
    return fake_redis


@pytest.fixture(autouse=True)
def no_restricted_window(monkeypatch: pytest.MonkeyPatch):
    """Keep wall-clock time out of tests that rely on configured rules."""
    monkeypatch.setattr(settings, "RESTRICTED_TIME_START", 0)
    monkeypatch.setattr(settings, "RESTRICTED_TIME_END", 0)


@pytest.fixture
def make_event(db_session: Session):
    counter = itertools.count(1)

    def _make(
        *,
        slot: int = 1,
        club_name: str | None = None,
        capacity: int = 10,
        booked_count: int = 0,
        name: str | None = None,
    ) -> Event:
        n = next(counter)
        event = Event(
            name=name or f"Event {n}",
            venue="Main Hall",
            club_name=club_name or f"Club {n}",
            slot=slot,
            capacity=capacity,
            booked_count=booked_count,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a real file database, one connection per thread."""
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    yield sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
    file_engine.dispose()
