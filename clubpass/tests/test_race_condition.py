"""
Test race condition handling for seat booking and attendance.

Each scenario:
1. Creates events on a file-backed database
2. Fires concurrent requests, one session per thread
3. Verifies that capacity is never exceeded and nothing is counted twice
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select

from clubpass.core.config import BookingRules, settings
from clubpass.core.errors import DomainError, ErrorKind
from clubpass.models.bookings import Booking
from clubpass.models.events import Event
from clubpass.services.attendance import redeem
from clubpass.services.bookings import reserve
from clubpass.tests.factories import NOON

RACE_RULES = BookingRules(transaction_max_attempts=10, transaction_retry_backoff=0.01)


def create_event(session_factory, *, capacity: int, slot: int = 1, club_name: str = "Race Club") -> int:
    with session_factory() as db:
        event = Event(
            name=f"Race Event {club_name}",
            venue="Main Hall",
            club_name=club_name,
            slot=slot,
            capacity=capacity,
        )
        db.add(event)
        db.commit()
        return event.id


def book(session_factory, user_id: str, event_ids: list[int]) -> tuple[str, ErrorKind | None]:
    """Try to book in a private session. Returns (user_id, error kind or None)."""
    with session_factory() as db:
        try:
            reserve(db, user_id, event_ids, rules=RACE_RULES, now=NOON)
        except DomainError as exc:
            return user_id, exc.kind
    return user_id, None


def run_concurrently(fn, args_list: list[tuple]) -> list:
    with ThreadPoolExecutor(max_workers=len(args_list)) as executor:
        futures = [executor.submit(fn, *args) for args in args_list]
        return [f.result() for f in futures]


def event_state(session_factory, event_id: int) -> tuple[int, int]:
    """(booked_count, number of booking rows) for one event."""
    with session_factory() as db:
        event = db.get(Event, event_id)
        rows = db.scalar(select(func.count(Booking.id)).where(Booking.event_id == event_id))
        return event.booked_count, rows


def test_last_seat_two_users(file_session_factory):
    """Two users race for the last seat: exactly one wins."""
    event_id = create_event(file_session_factory, capacity=1)

    results = run_concurrently(
        book, [(file_session_factory, "u1", [event_id]), (file_session_factory, "u2", [event_id])]
    )

    successful = [user for user, kind in results if kind is None]
    failed = [kind for _, kind in results if kind is not None]
    assert len(successful) == 1
    assert failed == [ErrorKind.EVENT_FULL]
    assert event_state(file_session_factory, event_id) == (1, 1)


def test_ten_users_never_oversell(file_session_factory):
    """Ten concurrent requests for three seats never exceed capacity."""
    event_id = create_event(file_session_factory, capacity=3)

    results = run_concurrently(
        book, [(file_session_factory, f"user-{n}", [event_id]) for n in range(1, 11)]
    )

    successful = [user for user, kind in results if kind is None]
    failed = [kind for _, kind in results if kind is not None]
    assert len(successful) == 3
    assert set(failed) <= {ErrorKind.EVENT_FULL, ErrorKind.CONTENTION}
    assert event_state(file_session_factory, event_id) == (3, 3)


def test_batches_compete_for_last_seat(file_session_factory):
    """A batch that loses the last seat of one event books none of its events."""
    contested = create_event(file_session_factory, capacity=1, slot=1, club_name="Chess")
    open_a = create_event(file_session_factory, capacity=10, slot=2, club_name="Drama")
    open_b = create_event(file_session_factory, capacity=10, slot=3, club_name="Film")

    results = run_concurrently(
        book,
        [
            (file_session_factory, "u1", [open_a, contested]),
            (file_session_factory, "u2", [open_b, contested]),
        ],
    )

    winners = [user for user, kind in results if kind is None]
    assert len(winners) == 1
    assert event_state(file_session_factory, contested) == (1, 1)
    counts = {
        "u1": event_state(file_session_factory, open_a),
        "u2": event_state(file_session_factory, open_b),
    }
    for user, state in counts.items():
        assert state == ((1, 1) if user in winners else (0, 0))


def test_same_user_double_submit(file_session_factory):
    """The same user submitting twice at once gets a single booking."""
    event_id = create_event(file_session_factory, capacity=10)

    results = run_concurrently(book, [(file_session_factory, "alice", [event_id])] * 4)

    successful = [kind for _, kind in results if kind is None]
    failed = [kind for _, kind in results if kind is not None]
    assert len(successful) == 1
    assert set(failed) <= {ErrorKind.DUPLICATE_BOOKING, ErrorKind.CONTENTION}
    assert event_state(file_session_factory, event_id) == (1, 1)


def test_concurrent_scans_redeem_once(file_session_factory, monkeypatch: pytest.MonkeyPatch):
    """Several scanners reading the same ticket mark attendance exactly once."""
    monkeypatch.setattr(settings, "TRANSACTION_MAX_ATTEMPTS", RACE_RULES.transaction_max_attempts)
    monkeypatch.setattr(settings, "TRANSACTION_RETRY_BACKOFF", RACE_RULES.transaction_retry_backoff)
    event_id = create_event(file_session_factory, capacity=10)
    with file_session_factory() as db:
        [booking] = reserve(db, "alice", [event_id], rules=RACE_RULES, now=NOON)
        token, booking_id = booking.proof_token, booking.id

    def scan() -> ErrorKind | None:
        with file_session_factory() as db:
            try:
                redeem(db, token, event_id, now=NOON)
            except DomainError as exc:
                return exc.kind
        return None

    results = run_concurrently(scan, [()] * 5)

    assert results.count(None) == 1
    assert [r for r in results if r is not None] == [ErrorKind.ALREADY_ATTENDED] * 4
    with file_session_factory() as db:
        booking = db.get(Booking, booking_id)
        assert booking.attended is True
        assert booking.attendance_time is not None
