"""Reservation engine.

A user's batch of events is booked all-or-nothing:

1. Under a per-user Redis lock, the batch is checked against the booking
   rules (slot, club, daily cap, restricted window) using a read that
   precedes the transaction.
2. One transaction re-reads every event, rejects full or already-booked
   ones, takes a seat with a conditional UPDATE and inserts the booking
   with its proof token. Any failure rolls the whole batch back.
3. Storage conflicts are retried a bounded number of times before
   surfacing as ``ContentionError``.
"""

import datetime as dt
import logging
from collections.abc import Sequence
from functools import lru_cache

import redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubpass.core.config import BookingRules, settings
from clubpass.core.errors import (
    ClubConflictError,
    ContentionError,
    DailyCapExceededError,
    DuplicateBookingError,
    EventFullError,
    EventNotFoundError,
    InvalidBatchError,
    ReservationError,
    RestrictedWindowExceededError,
    SlotConflictError,
)
from clubpass.core.redis_config import get_redis_url, user_lock_key
from clubpass.database.transactions import run_transaction
from clubpass.models.bookings import Booking
from clubpass.models.events import Event
from clubpass.services import booking_store, catalog, selection, tokens

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


def validate_business_rules(
    batch: Sequence[Event],
    existing: Sequence[Event],
    existing_count: int,
    rules: BookingRules,
    now: dt.datetime,
) -> None:
    """Reject a batch that breaks a booking rule.

    ``existing`` are the events behind the user's current bookings and
    ``existing_count`` is the number of those bookings.
    """
    accepted: list[Event] = list(existing)
    for event in batch:
        if selection.has_slot_conflict(event, accepted):
            other = next(e for e in accepted if e.slot == event.slot)
            raise SlotConflictError(event.name, event.slot, other.name)
        if selection.has_club_conflict(event, accepted):
            other = next(e for e in accepted if e.club_name == event.club_name)
            raise ClubConflictError(event.name, event.club_name, other.name)
        accepted.append(event)

    requested = existing_count + len(batch)
    if requested > rules.max_events_per_day:
        raise DailyCapExceededError(rules.max_events_per_day, requested)

    if selection.exceeds_restricted_window(batch, rules, now):
        raise RestrictedWindowExceededError(
            rules.max_events_during_restriction,
            rules.restricted_start_hour,
            rules.restricted_end_hour,
        )


def _precheck(
    db: Session, user_id: str, event_ids: list[int], rules: BookingRules, now: dt.datetime
) -> None:
    batch: list[Event] = []
    for event_id in event_ids:
        event = catalog.get_event(db, event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        batch.append(event)

    existing = booking_store.list_user_booked_events(db, user_id)
    booked_ids = {e.id for e in existing}
    for event in batch:
        if event.id in booked_ids:
            raise DuplicateBookingError(event.id, event.name)

    existing_count = booking_store.count_user_bookings(db, user_id)
    validate_business_rules(batch, existing, existing_count, rules, now)


def _commit_batch(
    db: Session, user_id: str, event_ids: list[int], now: dt.datetime
) -> list[Booking]:
    """Body of the reservation transaction."""
    events = catalog.lock_events(db, event_ids)
    bookings: list[Booking] = []
    for event_id in event_ids:
        event = events.get(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if event.booked_count >= event.capacity:
            raise EventFullError(event.id, event.name)
        if booking_store.get_user_booking(db, user_id, event.id) is not None:
            raise DuplicateBookingError(event.id, event.name)

        if not catalog.increment_booked(db, event.id):
            raise EventFullError(event.id, event.name)

        booking_id = booking_store.booking_id_for(user_id, event.id)
        proof = tokens.issue(booking_id, user_id, event.id, now, secret=settings.PROOF_SIGNING_KEY)
        try:
            booking = booking_store.create_booking_record(
                db, user_id=user_id, event=event, proof_token=proof
            )
        except IntegrityError as exc:
            raise DuplicateBookingError(event.id, event.name) from exc
        bookings.append(booking)
    return bookings


def reserve(
    db: Session,
    user_id: str,
    event_ids: Sequence[int],
    *,
    rules: BookingRules | None = None,
    now: dt.datetime | None = None,
) -> list[Booking]:
    """Book every event in ``event_ids`` for ``user_id``, or none of them.

    Raises:
        InvalidBatchError: If the batch is empty or repeats an event.
        BusinessRuleError: If a slot, club, daily cap or restricted window
            rule rejects the batch. Nothing is written.
        EventNotFoundError, EventFullError, DuplicateBookingError: If the
            storage state rejects an event. Nothing is written.
        ContentionError: If the user lock or the transaction could not be
            obtained after bounded retries.
    """
    rules = rules or settings.booking_rules()
    now = now or dt.datetime.now().astimezone()
    ids = list(event_ids)
    if not ids:
        raise InvalidBatchError("Select at least one event")
    if len(set(ids)) != len(ids):
        raise InvalidBatchError("Each event can appear only once in a booking")

    redis_client = get_redis_client()
    lock = redis_client.lock(
        user_lock_key(user_id),
        timeout=settings.USER_LOCK_TIMEOUT,
        blocking_timeout=settings.USER_LOCK_BLOCKING_TIMEOUT,
    )
    try:
        if not lock.acquire(blocking=True):
            raise ContentionError("Another booking for this user is in progress, please try again.")
    except redis.exceptions.LockError as exc:  # type: ignore
        raise ContentionError("Could not acquire booking lock, please try again.") from exc

    try:
        _precheck(db, user_id, ids, rules, now)
        bookings = run_transaction(
            db,
            lambda: _commit_batch(db, user_id, ids, now),
            attempts=rules.transaction_max_attempts,
            backoff=rules.transaction_retry_backoff,
            label=f"reserve user={user_id}",
        )
    except ReservationError as exc:
        if db.in_transaction():
            db.rollback()
        logger.warning("Rejected batch %s for user %s: %s", ids, user_id, exc)
        raise
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:  # type: ignore
            # The TTL ran out and another holder may own the key now.
            logger.warning("Booking lock for user %s expired before release", user_id)

    logger.info("Booked %d event(s) %s for user %s", len(bookings), ids, user_id)
    return bookings


def get_user_bookings(db: Session, user_id: str) -> list[Booking]:
    return booking_store.list_user_bookings(db, user_id)


def get_booking(db: Session, booking_id: str) -> Booking | None:
    return booking_store.get_booking(db, booking_id)
