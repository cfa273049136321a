"""Attendance redemption.

A scanned proof token is checked against the event chosen by the operator
at the check-in station, then its booking moves from not-attended to
attended exactly once, even when two scanners read the same ticket at the
same moment.
"""

import datetime as dt
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from clubpass.core.config import settings
from clubpass.core.errors import (
    AlreadyAttendedError,
    BookingNotFoundError,
    EventMismatchError,
    EventNotFoundError,
    InvalidTokenError,
    MalformedTokenError,
    RedeemError,
)
from clubpass.database.transactions import run_transaction
from clubpass.models.bookings import Booking
from clubpass.services import booking_store, catalog, tokens

logger = logging.getLogger(__name__)


def _mark_attended(db: Session, booking_id: str, now: dt.datetime) -> Booking:
    if not booking_store.set_attended(db, booking_id, now):
        raise AlreadyAttendedError(booking_id)
    booking = booking_store.get_booking(db, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)
    return booking


def redeem(
    db: Session,
    raw_token: object,
    expected_event_id: int,
    *,
    now: dt.datetime | None = None,
) -> Booking:
    """Mark the booking behind ``raw_token`` as attended.

    Raises:
        InvalidTokenError: The scan is not a well-formed proof token.
        BookingNotFoundError: No booking matches the token.
        EventMismatchError: The booking is for another event.
        AlreadyAttendedError: The booking was already redeemed, possibly by
            a concurrent scan.
        ContentionError: The storage stayed contended after bounded retries.
    """
    now = now or dt.datetime.now(dt.timezone.utc)
    try:
        try:
            proof = tokens.parse(raw_token, secret=settings.PROOF_SIGNING_KEY)
        except MalformedTokenError as exc:
            raise InvalidTokenError(exc.message) from exc

        booking = booking_store.get_booking(db, proof.booking_id)
        if booking is None:
            raise BookingNotFoundError(proof.booking_id)
        if booking.event_id != expected_event_id:
            raise EventMismatchError(booking.event_id, expected_event_id)
        if booking.attended:
            raise AlreadyAttendedError(booking.id)

        rules = settings.booking_rules()
        booking = run_transaction(
            db,
            lambda: _mark_attended(db, proof.booking_id, now),
            attempts=rules.transaction_max_attempts,
            backoff=rules.transaction_retry_backoff,
            label=f"redeem booking={proof.booking_id}",
        )
    except RedeemError as exc:
        if db.in_transaction():
            db.rollback()
        logger.warning("Rejected scan at event %s: %s", expected_event_id, exc)
        raise

    logger.info("Marked booking %s attended at event %s", booking.id, expected_event_id)
    return booking


def list_event_attendance(db: Session, event_id: int) -> list[Booking]:
    """Roster of bookings for one event, oldest first."""
    if catalog.get_event(db, event_id) is None:
        raise EventNotFoundError(event_id)
    return list(
        db.scalars(
            select(Booking)
            .where(Booking.event_id == event_id)
            .order_by(Booking.created_at, Booking.id)
        ).all()
    )
